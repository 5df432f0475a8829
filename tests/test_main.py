import logging

import pytest

import main
from conftest import FakeGateway, make_user

HEADER = "firstName,lastName,username,department,jobTitle,email\n"
OPTIONAL_VARS = (
    "AD_DOMAIN", "USERS_ROOT_DN", "DEFAULT_PASSWORD", "DEPARTMENT_GROUPS_FILE",
    "HOME_ROOT", "SMTP_SERVER", "ADMIN_EMAIL",
)


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def env(monkeypatch):
    for name in OPTIONAL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AD_SERVER", "ldaps://dc1")
    monkeypatch.setenv("AD_USERNAME", "svc")
    monkeypatch.setenv("AD_PASSWORD", "pw")
    monkeypatch.setenv("BASE_DN", "DC=x,DC=local")
    return monkeypatch


@pytest.fixture
def fake(env) -> FakeGateway:
    gateway = FakeGateway(groups=("IT Staff", "VPN Users", "Domain Users"))
    env.setattr(main, "ActiveDirectoryClient", lambda *args, **kwargs: gateway)
    return gateway


def run(tmp_path, *args) -> int:
    argv = ["--log-dir", str(tmp_path / "logs"), "--env-file", str(tmp_path / "none.env"), *args]
    with pytest.raises(SystemExit) as ctx:
        main.main(argv)
    return ctx.value.code


def write_csv(tmp_path, *rows: str) -> str:
    path = tmp_path / "users.csv"
    path.write_text(HEADER + "".join(row + "\n" for row in rows), encoding="utf-8")
    return str(path)


def test_create_success_exits_zero(tmp_path, fake) -> None:
    csv_path = write_csv(tmp_path, "John,Doe,jdoe,IT,Dev,john.doe@x.local")

    code = run(tmp_path, "create", csv_path, "--report-dir", str(tmp_path / "reports"))

    assert code == 0
    assert fake.users["jdoe"]["displayName"] == "John Doe"
    assert fake.connected is False
    reports = sorted(p.name for p in (tmp_path / "reports").iterdir())
    assert any(name.endswith("_credentials.csv") for name in reports)
    assert any(name.endswith("_report.html") for name in reports)


def test_record_failure_exits_one(tmp_path, fake) -> None:
    fake.users["jdoe"] = make_user("jdoe")
    csv_path = write_csv(tmp_path, "John,Doe,jdoe,IT,Dev,john.doe@x.local",
                         "Ann,Smith,,IT,Dev,ann@x.local")

    assert run(tmp_path, "create", csv_path, "--report-dir", str(tmp_path / "reports")) == 1


def test_missing_columns_stop_before_connect(tmp_path, fake) -> None:
    path = tmp_path / "users.csv"
    path.write_text("username,email\njdoe,john.doe@x.local\n", encoding="utf-8")

    assert run(tmp_path, "create", str(path)) == 1
    assert fake.calls == []
    assert fake.connected is False


def test_dry_run_changes_nothing(tmp_path, fake) -> None:
    fake.users["jdoe"] = make_user("jdoe")
    csv_path = write_csv(tmp_path, "John,Doe,jdoe,IT,Dev,john.doe@x.local")

    code = run(tmp_path, "delete", csv_path, "--dry-run", "--report-dir", str(tmp_path / "reports"))

    assert code == 0
    assert fake.mutation_calls() == []
    assert "jdoe" in fake.users


def test_missing_config_exits_one(tmp_path, env) -> None:
    env.delenv("BASE_DN")

    assert run(tmp_path, "report") == 1


def test_missing_input_file_exits_one(tmp_path, fake) -> None:
    assert run(tmp_path, "delete", str(tmp_path / "missing.csv")) == 1
    assert fake.calls == []


def test_home_dirs_require_root(tmp_path, fake) -> None:
    csv_path = write_csv(tmp_path, "John,Doe,jdoe,IT,Dev,john.doe@x.local")

    assert run(tmp_path, "create", csv_path, "--home-dirs") == 1
    assert fake.calls == []


def test_report_without_input(tmp_path, fake) -> None:
    fake.users["jdoe"] = make_user("jdoe")

    assert run(tmp_path, "report", "--report-dir", str(tmp_path / "reports")) == 0
    assert fake.calls_to("list_all_users") == [("list_all_users",)]


def test_short_password_length_stops_before_connect(tmp_path, fake) -> None:
    csv_path = write_csv(tmp_path, "John,Doe,jdoe,IT,Dev,john.doe@x.local")

    assert run(tmp_path, "create", csv_path, "--password-length", "3") == 1
    assert fake.calls == []
    assert fake.connected is False
