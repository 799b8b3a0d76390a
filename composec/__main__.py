# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: composec maintainers; created: 2026-10-18
"""
CLI entrypoint for `python -m composec`.
"""

from .driver import main

if __name__ == "__main__":
	import sys
	sys.exit(main())
