#!/usr/bin/env python3
"""
User Management API Client

A small client for a running User Management API, plus a lifecycle script
that logs in, creates, reads, updates and deletes a user. Useful for
checking a local deployment end to end.

Usage:
    python -m user_api.client

Configuration:
    Set USER_API_URL, USER_API_USERNAME and USER_API_PASSWORD environment
    variables or rely on the defaults below.

Examples:
    # Run the lifecycle against a local server
    python -m user_api.client

    # Point at another deployment
    export USER_API_URL="http://localhost:9000"
    python -m user_api.client
"""

import os
import sys
from typing import Any, Dict, List, Optional

import requests


class UserApiError(Exception):
    """Raised when the API answers with an unexpected status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class UserApiClient:
    """Client for the User Management API."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 10):
        """Initialize the client.

        Args:
            base_url: API base URL (e.g., http://localhost:8080)
            session: Optional preconfigured session
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            return response.json().get('error', response.text)
        except ValueError:
            return response.text

    def login(self, username: str, password: str) -> str:
        """Log in and attach the returned bearer token to the session.

        Returns:
            The token string

        Raises:
            UserApiError: If the credentials are rejected
        """
        response = self.session.post(
            self._url('/login'),
            json={'username': username, 'password': password},
            timeout=self.timeout
        )
        if response.status_code != 200:
            raise UserApiError(response.status_code, 'Login failed')

        token = response.json()['token']
        self.session.headers['Authorization'] = f'Bearer {token}'
        return token

    def list_users(self) -> List[Dict[str, Any]]:
        response = self.session.get(self._url('/user'), timeout=self.timeout)
        if response.status_code != 200:
            raise UserApiError(response.status_code, self._error_message(response))
        return response.json()

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Fetch one user.

        Returns:
            User dict, or None if the id does not exist
        """
        response = self.session.get(self._url(f'/user/{user_id}'), timeout=self.timeout)
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise UserApiError(response.status_code, self._error_message(response))
        return response.json()

    def create_user(self, username: str, email: str) -> Dict[str, Any]:
        """Create a user.

        Returns:
            The created user including its assigned id

        Raises:
            UserApiError: With the validation message on 400
        """
        response = self.session.post(
            self._url('/user'),
            json={'username': username, 'email': email},
            timeout=self.timeout
        )
        if response.status_code != 201:
            raise UserApiError(response.status_code, self._error_message(response))
        return response.json()

    def update_user(self, user_id: int, username: str, email: str) -> bool:
        """Replace a user's username and email.

        Returns:
            True if updated, False if the id does not exist
        """
        response = self.session.put(
            self._url(f'/user/{user_id}'),
            json={'username': username, 'email': email},
            timeout=self.timeout
        )
        if response.status_code == 404:
            return False
        if response.status_code != 200:
            raise UserApiError(response.status_code, self._error_message(response))
        return True

    def delete_user(self, user_id: int) -> bool:
        response = self.session.delete(self._url(f'/user/{user_id}'), timeout=self.timeout)
        if response.status_code == 404:
            return False
        if response.status_code != 200:
            raise UserApiError(response.status_code, self._error_message(response))
        return True


def run_lifecycle(client: UserApiClient, username: str, password: str) -> bool:
    """Walk one user through create, read, update and delete.

    Returns:
        True if every step behaved as expected
    """
    print("🔐 Logging in...")
    client.login(username, password)
    print("✅ Token acquired")

    created = client.create_user('alicejohnson', 'alice.johnson@contoso.com')
    user_id = created['id']
    print(f"✅ Created user {created['username']} with id {user_id}")

    fetched = client.get_user(user_id)
    if fetched != created:
        print(f"❌ Fetched user does not match: {fetched}")
        return False
    print("✅ Fetched user matches")

    if not client.update_user(user_id, 'alicej', 'alice.j@contoso.com'):
        print("❌ Update reported missing user")
        return False
    print("✅ Updated user")

    users = client.list_users()
    print(f"✅ Listed {len(users)} users")

    if not client.delete_user(user_id):
        print("❌ Delete reported missing user")
        return False
    if client.get_user(user_id) is not None:
        print("❌ User still present after delete")
        return False
    print("✅ Deleted user")
    return True


def main():
    """Run the lifecycle against the configured deployment."""
    base_url = os.environ.get('USER_API_URL', 'http://localhost:8080')
    username = os.environ.get('USER_API_USERNAME', 'admin')
    password = os.environ.get('USER_API_PASSWORD', 'password')

    print("🚀 User Management API Client")
    print("=" * 50)
    print(f"📡 API URL: {base_url}")
    print()

    client = UserApiClient(base_url)
    try:
        ok = run_lifecycle(client, username, password)
    except (requests.RequestException, UserApiError) as e:
        print(f"💥 Request failed: {e}")
        ok = False

    print("\n" + "=" * 50)
    print("🎉 Lifecycle completed" if ok else "⚠️  Lifecycle failed")
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
