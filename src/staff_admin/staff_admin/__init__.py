"""Staff Admin package.

Authentication, authorization and change-request core of the staff
administration app, organized by feature modules (credentials, users, auth,
permissions, change_requests, ...) with a thin Flask controller layer over
service and repository layers.
"""
