"""
GrocerHub Backend — Services Layer
====================================

Business logic between routes (HTTP) and the database (persistence).
Services take a session (or the Database handle) per call and keep no
per-request state; each module exposes a singleton instance.

Service Inventory:
    - ReconciliationService: partner feed → canonical catalog + offerings
    - FulfillmentService:    order status state machine (driver / admin)
    - OrderService:          cart placement and order reads
    - CatalogService:        customer aggregation, admin products/offerings
    - StoreService:          partner store management
    - UserService:           user roles, driver location and availability
    - SeedService:           demo data for development
    - feeds/:                one FeedAdapter per partner API, plus a registry
    - CircuitBreaker:        per-adapter protection against failing partners
"""
