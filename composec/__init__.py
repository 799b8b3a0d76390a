# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
composec: runtime composition compiler.

Reads component manifests and a `construct_runtime!` composition, verifies
that every capability reference resolves and every interface bound holds,
and generates the aggregate runtime types. The CLI entrypoint is
`composec.driver:main`.
"""

__all__ = []
