# Services package init
"""
DevCamper Backend — Services Layer
====================================

Service Inventory:
    - AuthorizationPolicy: role-gate, ownership-gate, single-ownership rule
    - QueryService:        filter / select / sort / paginate / populate for list routes
    - Geocoder, RadiusResolver: address lookup and spherical radius search
    - FileService:         photo validation and storage
    - EmailService:        SMTP delivery of reset links
    - BootcampService, CourseService, ReviewService, UserService, AuthService:
      per-resource business logic called by the routes

Services are stateless singletons. Sessions, identities and external clients
are passed in per call, so tests substitute any of them directly.
"""
