"""
GrocerHub Backend — Application Package
=========================================

What: Grocery-delivery marketplace backend. Customers browse products
      aggregated across partner stores and place orders, drivers fulfil
      deliveries, and admins manage stores, the catalog and users.

Layout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← admin / customers / drivers
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← reconciliation, orders,
    │                                     │    fulfilment state machine
    ├─────────────────────────────────────┤
    │   Feed adapters (partner stores)    │  ← one adapter per partner API
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← explicitly constructed handle
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
