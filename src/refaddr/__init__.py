"""Parser for reference address expressions in compiled program artifacts."""
