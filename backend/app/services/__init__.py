# Services package init
"""
JunkHub Backend — Services Layer
==================================

Business rules between the routes and the database. Every service is a
stateless singleton taking the request's AsyncSession as first argument;
none of them commit (the session dependency does).

Service Inventory:
    - account_service:          registration, login, profiles, password reset
    - shop_service:             shops and their ownership checks
    - product_service:          catalog search, listings, moderation
    - order_service:            checkout with stock locking, order lifecycle
    - offer_service:            sell offers
    - chat_service:             per-order conversations and unread counts
    - user_service:             wishlist and reviews
    - notification_service:     inbox rows and event fan-out
    - owner_dashboard_service:  owner stats and activity
    - admin_service:            platform stats and account administration
"""
