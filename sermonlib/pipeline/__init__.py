"""
pipeline package
----------------
Codecs that move the catalog in and out of files:

- csv_codec: Tabular interchange import/export
- snapshot: Full-catalog JSON snapshots (``.slb`` backups) and restore
"""
