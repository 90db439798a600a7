"""Application startup helpers: logging, CORS, errors, routes and lifespan."""
