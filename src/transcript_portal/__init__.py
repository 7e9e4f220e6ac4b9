"""Transcript request portal: accounts, payments and request lifecycle."""
