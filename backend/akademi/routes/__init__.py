# Routes package init
"""
Akademi Backend — API Routes Package
======================================

Route Inventory:
    - health.py:        GET  /health, GET /diag
    - users.py:         POST /create-user, GET /users/{email},
                        GET  /all-users, PATCH /update-role/{id}
    - scholarships.py:  GET  /, GET /all-data, GET /scholarship/{id},
                        POST /add-scholarship
    - payments.py:      POST /create-payment-intent

Routes stay thin: pull parameters, call one service method, return its result.
"""
