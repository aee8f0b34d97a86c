"""
Pytest configuration and fixtures for testing the dashboard service.
"""

import os
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

# Set up test environment variables BEFORE importing from dashboard
# Tests must never touch a real DASHBOARD_DIR
test_dashboard_dir = Path(tempfile.gettempdir()) / "dashboard_test_artifacts"
test_dashboard_dir.mkdir(parents=True, exist_ok=True)
os.environ["DASHBOARD_DIR"] = str(test_dashboard_dir)
os.environ.pop("FIREBASE_SERVICE_ACCOUNT_KEY", None)

import pytest
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient
from jose import jwt

from dashboard.backends import StoreBundle, build_local_bundle
from dashboard.backends.database import create_db_engine
from dashboard.common.config import DashboardConfig
from dashboard.deletion import kinds

TEST_DB_URL = "sqlite:///:memory:"
PUBLIC_HOST = "firebasestorage.googleapis.com"


@pytest.fixture(scope="function")
def test_engine():
    """In-memory SQLite engine (StaticPool keeps one shared connection)."""
    engine = create_db_engine(TEST_DB_URL)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def blob_dir(tmp_path: Path) -> Path:
    return tmp_path / "blobs"


@pytest.fixture(scope="function")
def bundle(test_engine, blob_dir) -> StoreBundle:
    """Local store bundle with tables created and an empty blob directory."""
    return build_local_bundle(
        test_engine,
        str(blob_dir),
        kinds.collections(),
        bucket="test-bucket",
        public_host=PUBLIC_HOST,
    )


@pytest.fixture(scope="function")
def test_config(tmp_path: Path) -> DashboardConfig:
    return DashboardConfig(
        dashboard_dir=tmp_path,
        blob_storage_dir=tmp_path / "blobs",
        public_key_path=tmp_path / "keys" / "public_key.pem",
        database_url=TEST_DB_URL,
        storage_bucket="test-bucket",
        no_auth=True,
    )


@pytest.fixture
def seed_customer(bundle: StoreBundle):
    """Create a customer with a login, a hosted profile image and folder blobs.

    Returns a callable producing ``(customer_id, principal_id, image_path)``.
    """

    def _seed(customer_id: str = "C1", *, extra_blobs: int = 2, with_principal: bool = True):
        assert bundle.blobs is not None and bundle.identities is not None
        principal_id = (
            bundle.identities.create_principal(email=f"{customer_id.lower()}@example.com")
            if with_principal
            else None
        )
        image_path = f"customerImage/{customer_id}/photo.png"
        bundle.blobs.put_object(image_path, b"\x89PNG", content_type="image/png")
        for i in range(extra_blobs):
            bundle.blobs.put_object(f"customerImage/{customer_id}/thumb_{i}.png", b"thumb")

        document = {"name": f"Customer {customer_id}", "image": bundle.blobs.public_url(image_path)}
        if principal_id:
            document["uid"] = principal_id
        bundle.record_store("customers").put(customer_id, document)
        return customer_id, principal_id, image_path

    return _seed


def _make_client(config: DashboardConfig, bundle: StoreBundle):
    from dashboard import app

    app.state.config = config
    app.state.bundle = bundle
    return app


@pytest.fixture(scope="function")
def client(test_config, bundle):
    """Test client with auth disabled and the local store bundle."""
    app = _make_client(test_config, bundle)

    with TestClient(app) as test_client:
        yield test_client

    app.state.config = None
    app.state.bundle = None


@pytest.fixture(scope="function")
def key_pair(tmp_path):
    """Generate ES256 key pair for JWT testing.

    Returns:
        tuple: (private_key_pem, public_key_path)
    """
    private_key = ec.generate_private_key(ec.SECP256R1(), default_backend())

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )

    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    public_key_path = tmp_path / "keys" / "public_key.pem"
    public_key_path.parent.mkdir(parents=True, exist_ok=True)
    public_key_path.write_bytes(public_pem)

    return private_pem, public_key_path


@pytest.fixture(scope="function")
def jwt_token_generator(key_pair):
    """Generate JWT tokens with configurable claims for testing."""

    class TestTokenGenerator:
        def __init__(self, private_key_pem):
            self.private_key = private_key_pem.decode()

        def generate_token(
            self, sub="testuser", permissions=None, is_admin=False, expired=False
        ):
            if permissions is None:
                permissions = ["dashboard_write"]

            if expired:
                exp = datetime.now(UTC) - timedelta(hours=1)
            else:
                exp = datetime.now(UTC) + timedelta(hours=1)

            payload = {
                "sub": sub,
                "permissions": permissions,
                "is_admin": is_admin,
                "exp": exp,
                "iat": datetime.now(UTC),
            }
            return jwt.encode(payload, self.private_key, algorithm="ES256")

        def generate_invalid_token_wrong_key(self):
            """Generate a token signed with a different private key."""
            wrong_key = ec.generate_private_key(ec.SECP256R1(), default_backend())
            wrong_key_pem = wrong_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
            payload = {
                "sub": "testuser",
                "permissions": ["dashboard_write"],
                "is_admin": False,
                "exp": datetime.now(UTC) + timedelta(hours=1),
            }
            return jwt.encode(payload, wrong_key_pem.decode(), algorithm="ES256")

    return TestTokenGenerator(key_pair[0])


@pytest.fixture(scope="function")
def auth_client(test_config, bundle, key_pair):
    """Test client WITH authentication enabled, trusting ``key_pair``."""
    from dashboard.common import auth

    auth.reset_public_key_cache()
    config = test_config.model_copy(
        update={"no_auth": False, "public_key_path": key_pair[1]}
    )
    app = _make_client(config, bundle)

    with TestClient(app) as test_client:
        yield test_client

    app.state.config = None
    app.state.bundle = None
    auth.reset_public_key_cache()
