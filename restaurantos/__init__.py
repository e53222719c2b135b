"""
                RestaurantOS

Restaurant operations backend: role-based dashboards for kitchen, bar,
waiters, customers and managers, a floor plan, inventory tracking,
sales reporting, AI-assisted voice ordering and German invoicing with
DATEV export.
"""

__version__ = "1.0.0"
