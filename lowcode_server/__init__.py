"""
Low-code platform server.

Models workspaces, projects and resources, gates resource creation against
billing entitlements and generates backend service code from resource models.
"""
