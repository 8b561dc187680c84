# Services package init
"""
Akademi Backend — Services Layer
==================================

What:  Business logic between routes (HTTP) and the document store / Stripe.
How:   Services receive collection handles or clients per call and translate
       driver exceptions into akademi.exceptions types.

Service Inventory:
    - UserService: registration, lookup, listing, role changes
    - ScholarshipService: top/all listings, detail with reviews, creation
    - PaymentService: Stripe PaymentIntent creation (the payment bridge)
"""
