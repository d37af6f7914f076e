"""
Feature modules live under this package.

Keep module boundaries clean: identity resolution stays free of Flask and of any concrete
satellite app; navigation and report_sync own their routes and reuse platform primitives
(config, storage, DB session).
"""
