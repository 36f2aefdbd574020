"""Database schema for the SQLite remote store."""

SCHEMA = """
-- Items table: folders and files, addressed by opaque id
CREATE TABLE IF NOT EXISTS items (
    id TEXT PRIMARY KEY,
    parent_id TEXT NOT NULL,
    name TEXT NOT NULL,
    mime_type TEXT NOT NULL DEFAULT '',
    is_folder INTEGER NOT NULL DEFAULT 0,
    content BLOB,              -- NULL for folders
    created_time TEXT NOT NULL,
    modified_time TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 1
);

-- Listing a folder's children
CREATE INDEX IF NOT EXISTS idx_items_parent ON items(parent_id, is_folder);

-- At most one folder per name and parent
CREATE UNIQUE INDEX IF NOT EXISTS idx_folder_name
    ON items(parent_id, name) WHERE is_folder = 1;
"""
