"""
Batch jobs driven from local files.

Modules:
- sheet: ingestion spreadsheet reading and tag folding
- runner: sequential batch upload and embedding jobs
"""
