import logging

from core.dry_run import DryRunGateway
from core.models import UserAccount

from conftest import make_user


def test_reads_pass_through(gateway) -> None:
    gateway.users["jdoe"] = make_user("jdoe")
    dry = DryRunGateway(gateway)

    assert dry.user_exists("jdoe")
    assert dry.get_user("jdoe")["username"] == "jdoe"
    assert dry.group_exists("IT Staff")
    assert not dry.organizational_unit_exists("OU=IT,DC=x,DC=local")
    assert [u["username"] for u in dry.list_all_users()] == ["jdoe"]


def test_mutations_are_logged_not_performed(gateway, caplog) -> None:
    gateway.users["jdoe"] = make_user("jdoe")
    dry = DryRunGateway(gateway)
    account = UserAccount(username="asmith", display_name="Ann Smith",
                          principal_name="asmith@x.local", ou_path="OU=IT,DC=x,DC=local")

    with caplog.at_level(logging.INFO):
        results = [
            dry.create_organizational_unit("IT", "DC=x,DC=local", ""),
            dry.create_user(account),
            dry.update_user("jdoe", {"jobTitle": "Lead"}),
            dry.disable_user("jdoe"),
            dry.delete_user("jdoe"),
            dry.add_group_member("IT Staff", "jdoe"),
        ]

    assert all(result.success for result in results)
    assert gateway.mutation_calls() == []
    assert gateway.users["jdoe"]["enabled"] is True
    assert sum("[DRY-RUN] Would" in message for message in caplog.messages) == 6


def test_remembers_would_be_creations_and_deletions(gateway) -> None:
    gateway.users["jdoe"] = make_user("jdoe")
    dry = DryRunGateway(gateway)
    account = UserAccount(username="asmith", display_name="Ann Smith",
                          principal_name="asmith@x.local", ou_path="OU=IT,DC=x,DC=local")

    dry.create_organizational_unit("IT", "DC=x,DC=local", "")
    dry.create_user(account)
    dry.delete_user("jdoe")

    assert dry.organizational_unit_exists("OU=IT,DC=x,DC=local")
    assert dry.user_exists("asmith")
    assert not dry.user_exists("jdoe")
    assert dry.get_user("jdoe") == {}
    assert gateway.mutation_calls() == []
