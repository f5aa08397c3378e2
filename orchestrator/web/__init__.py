"""Orchestrator Web Module

This module provides the FastAPI application that exposes workflow execution,
instance inspection and input form resolution over HTTP.
"""
