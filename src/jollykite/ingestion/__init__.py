"""Ingestion helpers.

Everything that turns upstream payloads into canonical values lives here so
the models and stores never interpret raw source data.
"""
