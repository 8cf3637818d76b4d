"""
Shared, cross-cutting code for the API.

`core/` contains small building blocks that multiple features use
(DB wiring, structured errors, logging). Keep feature-specific SQL and
business logic in the corresponding feature package (e.g. `lists/`).
"""
