from roulette import cli
from roulette.candidate import Candidate


class DummyPortal:
    def __init__(self, base_url=None, token=None):
        self.batches = [[Candidate(id=c, title=f"Intern {c}", organization="Acme") for c in "abcd"]]

    async def fetch_candidates(self, count):
        return self.batches.pop(0) if self.batches else []

    async def record_decision(self, candidate_id, decision):
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return None


def test_cli_replays_drags(monkeypatch, capsys):
    monkeypatch.setattr(cli, "PortalClient", DummyPortal)
    cli.main(["--drag", "150", "--drag", "-40", "--drag", "-120"])
    out = capsys.readouterr().out
    assert "Intern a @ Acme: dx=+150 -> commit-right" in out
    assert "dx=-40 -> cancel" in out
    assert "Intern b @ Acme: dx=-120 -> commit-left" in out
    assert "Swiped: 2 | Saved: 1 | Passed: 1" in out
    assert "Intern c (c)" in out
    assert "Internship saved!" in out
