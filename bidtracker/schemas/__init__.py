"""
schemas/ — Pydantic request/response models for the Bid Tracker API

Request bodies are validated here so services only ever see sanitized data.
Wire format is camelCase; snake_case field names are accepted on input too.
"""
