"""
Issue Tree Server - FastAPI backend, editor session and CLI.
"""
