"""billshare: split a restaurant bill between friends."""
