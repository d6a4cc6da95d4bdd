# Services package init
"""
EcoAdmin Backend: Services Layer
=================================

What:  Business logic between the routes (HTTP) and the record store.
How:   Services take the request's AsyncSession as an argument and return
       response schemas. One instance of each is built in create_app() and
       stored on app.state; routes reach them through ecoadmin.dependencies.

Service Inventory:
    - ImageService: image validation plus the blob store (put/get/cleanup)
    - SubmissionService: generic create/list/review workflow
        - LocationService: bound to `locations`
        - ProfileService: bound to `profiles`
    - JoinRequestService: join requests against approved locations
    - AdminService: shared-secret check and the email-intent stub
"""
