"""
GrocerHub Backend — API Routes Package
========================================

Route Inventory:
    - admin.py:     /api/admin/*      users, orders, stores, catalog sync, products
    - customers.py: /api/customers/*  product browsing (public), own orders
    - drivers.py:   /api/drivers/*    assigned orders, status, location, availability
    - health.py:    /health           database and feed circuit status

Routes stay thin: parse the request, check the caller's role, call a
service, shape the response. Business rules live in services.
"""
