"""Axe accessibility MCP server: axe-core audits through a private headless Chrome."""
