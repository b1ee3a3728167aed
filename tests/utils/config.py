from config import ApplicationConfig


class TestConfig(ApplicationConfig):
    __test__ = False

    RESET_LINK_BASE_URL = "https://app.peakmode.test"
    ADMIN_API_KEY = "test-admin-key"
    CORS_ORIGINS = ["http://localhost:3000"]
