"""Shared test fixtures for the SpecGap test suite."""

from pathlib import Path
from textwrap import dedent

import pytest


def write(path: Path, content: str) -> Path:
    """Write dedented content, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dedent(content).lstrip("\n"), encoding="utf-8")
    return path


@pytest.fixture
def project_root(tmp_path):
    """Create a temporary project root directory."""
    return tmp_path


@pytest.fixture
def sample_python_file(tmp_path):
    """A module with a real function, a stub and a class."""
    return write(
        tmp_path / "sample.py",
        '''
        import os
        from typing import Optional


        def hello(name, greeting="Hello"):
            """Say hello."""
            return f"{greeting}, {name}!"


        def pending():
            """Not done yet."""
            pass


        class Calculator:
            precision = 2

            def add(self, a, b):
                return a + b

            @staticmethod
            def zero(value):
                return 0
        ''',
    )


@pytest.fixture
def speckit_project(tmp_path):
    """
    A Spec Kit project with one feature specification.

    FR-001 claims a real function, FR-002 a stub, FR-003 claims nothing.
    """
    write(
        tmp_path / "specs" / "001-auth" / "spec.md",
        """
        # F001: Authentication

        **Status:** In Progress
        **Priority:** P1

        ## Functional Requirements

        ### FR-001: User Login
        **Priority:** P0
        Users sign in with a username and password.

        **Implementation:** `src/auth.py`
        **Functions:** `login(username, password)`

        ### FR-002: Password Reset
        Users reset a forgotten password.

        **Implementation:** `src/reset.py`
        **Functions:** `reset_password`

        ### FR-003: Audit Trail
        Every sign-in is recorded. Depends on FR001.
        """,
    )
    write(
        tmp_path / "src" / "auth.py",
        '''
        def login(username, password):
            """Authenticate a user."""
            if not username or not password:
                return False
            return True
        ''',
    )
    write(
        tmp_path / "src" / "reset.py",
        '''
        def reset_password(email):
            """Reset the password."""
            pass
        ''',
    )
    write(
        tmp_path / "tests" / "test_auth.py",
        """
        def test_login():
            assert True
        """,
    )
    return tmp_path


@pytest.fixture
def bmad_project(tmp_path):
    """A BMAD project with prd.md and epics.md under _bmad-output/planning-artifacts."""
    planning = tmp_path / "_bmad-output" / "planning-artifacts"
    write(
        planning / "prd.md",
        """
        ---
        project: Shop
        ---
        # Shop Product Requirements

        Online shop for small businesses.

        ## Functional Requirements

        - **Checkout:** Customers pay for the items in their cart.
        - **Catalog:** Customers browse products.

        ## Non-Functional Requirements

        ### Performance
        Pages render in under one second.
        """,
    )
    write(
        planning / "epics.md",
        """
        # Epics

        ## Epic 1: Checkout Flow

        Customers complete a purchase.

        ### Story 1.1: Cart Review
        As a customer, I want to review my cart, so that I can fix mistakes.

        **Acceptance Criteria:**
        - Given a cart with items
        - When I open the cart
        - Then I see every item

        ### Story 1.2: Payment
        As a customer, I want to pay by card, so that I can finish checkout.
        """,
    )
    return tmp_path


@pytest.fixture
def write_file():
    """The write() helper, for tests that build their own trees."""
    return write
