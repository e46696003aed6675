"""Tests for the FastAPI factory, the uvicorn runner and the entry point."""

from httpx import ASGITransport, AsyncClient
from uvicorn.config import LOGGING_CONFIG

from equizz import main as entry_point
from equizz.web import runner
from equizz.web.server import create_fastapi_app

FRONTEND = "https://equizz.institutsaintjean.org"


async def preflight(fastapi_app) -> dict[str, str]:
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.options(
            "/api/auth/login", headers={"Origin": FRONTEND, "Access-Control-Request-Method": "POST"}
        )
    return dict(response.headers)


class TestCors:
    async def test_configured_origin_allowed(self, app, config):
        config.cors_origins = [FRONTEND]
        headers = await preflight(create_fastapi_app(app, config))
        assert headers["access-control-allow-origin"] == FRONTEND

    async def test_no_origins_no_cors(self, app, config):
        headers = await preflight(create_fastapi_app(app, config))
        assert "access-control-allow-origin" not in headers


class TestRunner:
    def test_run_server_uses_config(self, app, config, monkeypatch):
        calls = []
        monkeypatch.setattr(runner.uvicorn, "run", lambda fastapi_app, **kwargs: calls.append(kwargs))
        config.port = 8080
        config.forwarded_allow_ips = ["10.0.0.2"]

        runner.run_server(app, config)

        [kwargs] = calls
        assert kwargs["port"] == 8080
        assert kwargs["proxy_headers"] is True
        assert kwargs["forwarded_allow_ips"] == ["10.0.0.2"]
        assert "%(client_addr)s" in kwargs["log_config"]["formatters"]["access"]["fmt"]

    def test_log_config_follows_debug(self, config):
        config.debug = True
        log_config = runner.build_log_config(config)
        assert log_config["loggers"]["uvicorn.access"]["level"] == "DEBUG"
        # uvicorn's module-level defaults stay untouched
        assert "%(asctime)s" not in LOGGING_CONFIG["formatters"]["access"]["fmt"]


class TestMain:
    def test_main_runs_server_from_environment(self, monkeypatch):
        monkeypatch.setenv("EQUIZZ_DATABASE_URL", "mongodb://localhost:27017/equizz_main")
        monkeypatch.setenv("EQUIZZ_JWT_SECRET", "main-secret")
        monkeypatch.setenv("EQUIZZ_CORS_ORIGINS", f'["{FRONTEND}"]')
        monkeypatch.setattr(entry_point, "setup_logging", lambda debug: None)
        monkeypatch.setattr(entry_point, "App", lambda config: config)
        started = []
        monkeypatch.setattr(entry_point, "run_server", lambda app, config: started.append(config))

        entry_point.main()

        [config] = started
        assert config.cors_origins == [FRONTEND]
        assert config.jwt_secret == "main-secret"
