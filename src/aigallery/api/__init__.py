"""AI Gallery — FastAPI REST API layer.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request bodies.
validation
    Sanitising and length checks for names, captions and prompts.
"""
