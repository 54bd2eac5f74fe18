"""Catalog page routes.

One router per entity plus the catalog home page. Every route follows
the same flow: fan out the reads the page needs, validate submitted
forms, persist, then render a template or redirect.
"""
