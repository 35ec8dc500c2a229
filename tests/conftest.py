"""
Pytest configuration and fixtures for the issue tree tests.

This module provides:
- Fresh graph stores and viewports
- A sample analysis result (Scenario A: two pillars with two evidence
  items and one solution each)
- An editor session and a FastAPI test client bound to it
"""

import pytest

from issuetree import EditorConfig, EditorMode, GraphStore, ViewportTransform


@pytest.fixture
def store():
    """Empty graph store."""
    return GraphStore()


@pytest.fixture
def viewport():
    """Viewport at zoom 1 with no pan."""
    return ViewportTransform()


@pytest.fixture
def analysis_data():
    """Hierarchical result with 1 problem, 1 hypothesis and 2 pillars."""
    return {
        "title": "Churn analysis",
        "rootProblem": "Monthly churn doubled since Q2",
        "hypothesis": "Onboarding friction drives early cancellations",
        "pillars": [
            {
                "category": "Onboarding",
                "goal": "Cut time-to-value in half",
                "evidence": [
                    "40% of churned users never finished setup",
                    "Setup takes 25 minutes on average",
                ],
                "solutions": [
                    {
                        "title": "Guided setup",
                        "description": "Step-by-step wizard",
                        "impact": "High",
                        "difficulty": "Medium",
                    }
                ],
            },
            {
                "category": "Support",
                "goal": "Answer tickets within a day",
                "evidence": [
                    "Median first response is 3 days",
                    "Support NPS dropped 12 points",
                ],
                "solutions": [
                    {
                        "title": "Triage bot",
                        "description": "",
                        "impact": "Medium",
                        "difficulty": "Low",
                    }
                ],
            },
        ],
        "risks": ["Wizard adds engineering load"],
    }


@pytest.fixture
def session():
    """Editor session starting in free-form mode."""
    from issuetree_server.session import EditorSession

    return EditorSession(EditorConfig(mode=EditorMode.FREE_FORM))


@pytest.fixture
def client(session, monkeypatch):
    """
    FastAPI test client whose routes talk to a fresh session.

    The lifespan (and its broadcaster task) is not started.
    """
    from fastapi.testclient import TestClient

    import issuetree_server.main as main

    monkeypatch.setattr(main, "editor_session", session)
    return TestClient(main.app)
