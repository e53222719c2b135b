"""
Service layer.

External providers (AI backend, email, event broker) sit behind an abstract
base class with a Mock implementation for development and a Real one for
staging and production. Pure restaurant logic (matching, layout, numbering,
invoicing, inventory, reports) lives in plain modules next to them.
"""
