"""Service layer package: fact loading, asset resolution and question generation."""
