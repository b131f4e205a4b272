"""Tests for vcsflow.actions.commands module."""

import pytest

from fakes import FakeContent, FakeDocument, FakeDocumentHost, FakeViewHost, make_services, status
from vcsflow.actions.commands import (
    CommandIDs,
    CommandRegistry,
    ContextCommandIDs as C,
    add_commands,
    pluralized,
)
from vcsflow.lib.errors import GitCommandError, VcsflowError
from vcsflow.lib.types import (
    ContextActionArgs,
    FileDiffArgs,
    FileDiffArgument,
    StatusCategory,
)
from vcsflow.notifications import Level


@pytest.fixture
def notices(notifier):
    seen = []
    notifier.add_sink(seen.append)
    return seen


@pytest.fixture
def documents():
    return FakeDocumentHost()


@pytest.fixture
def views():
    return FakeViewHost()


@pytest.fixture
def content():
    return FakeContent({
        ("a.py", "HEAD"): "x = 1\n",
        ("a.py", "INDEX"): "x = 2\n",
        ("a.py", "WORKING"): "x = 3\n",
    })


@pytest.fixture
def registry(repo, vcs, prompter, notifier, documents, views, content):
    registry = CommandRegistry(notifier)
    add_commands(
        registry,
        make_services(repo, vcs, prompter, notifier, documents=documents, content=content, views=views),
    )
    return registry


def files(*statuses):
    return ContextActionArgs(files=list(statuses))


class TestCommandRegistry:
    """Registration, predicates and the error boundary."""

    def test_duplicate_id_rejected(self, notifier):
        registry = CommandRegistry(notifier)

        async def noop(args):
            return None

        registry.add_command("x", noop, "X")
        with pytest.raises(ValueError):
            registry.add_command("x", noop, "X")

    def test_unknown_command(self, notifier):
        with pytest.raises(KeyError):
            CommandRegistry(notifier).label("nope")

    @pytest.mark.asyncio
    async def test_disabled_command_is_not_run(self, notifier):
        registry = CommandRegistry(notifier)
        ran = []

        async def run(args):
            ran.append(args)

        registry.add_command("x", run, "X", is_enabled=lambda args: False)
        assert await registry.execute("x") is None
        assert ran == []

    @pytest.mark.asyncio
    async def test_vcsflow_errors_become_notices(self, notifier, notices):
        registry = CommandRegistry(notifier)

        async def boom(args):
            raise VcsflowError("it broke")

        registry.add_command("x", boom, "Explode")
        assert await registry.execute("x") is None
        assert notices[-1].level == Level.ERROR
        assert notices[-1].message == "Explode failed"

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, notifier):
        registry = CommandRegistry(notifier)

        async def boom(args):
            raise RuntimeError("bug")

        registry.add_command("x", boom, "X")
        with pytest.raises(RuntimeError):
            await registry.execute("x")

    def test_pluralized(self):
        label = pluralized("one file", "many files")
        assert label(files(status("a", " M"))) == "one file"
        assert label(files(status("a", " M"), status("b", " M"))) == "many files"
        assert label(None) == "one file"


class TestRegisteredCommands:
    """Every command id is registered."""

    def test_all_ids(self, registry):
        ids = set(registry.list_commands())
        for command in (C.OPEN, C.DIFF, C.ADD, C.STAGE, C.TRACK, C.UNSTAGE, C.DELETE,
                        C.DISCARD, C.IGNORE, C.IGNORE_EXTENSION, C.NO_ACTION):
            assert command in ids
        for command in (CommandIDs.PUSH, CommandIDs.PULL, CommandIDs.CLONE,
                        CommandIDs.SHOW_DIFF, CommandIDs.PUBLISH):
            assert command in ids

    def test_no_action_is_disabled(self, registry):
        assert registry.label(C.NO_ACTION) == "No actions available"
        assert not registry.is_enabled(C.NO_ACTION)

    def test_publish_disabled_without_document(self, registry):
        assert not registry.is_enabled(CommandIDs.PUBLISH)


class TestFileCommands:
    """Context commands over selected files."""

    @pytest.mark.asyncio
    async def test_stage_adds_each_file(self, registry, vcs):
        await registry.execute(C.STAGE, files(status("a.py", " M"), status("b.py", "??")))
        assert vcs.calls == [("add", "a.py"), ("add", "b.py")]

    @pytest.mark.asyncio
    async def test_unstage_skips_staged_deletions(self, registry, vcs):
        await registry.execute(C.UNSTAGE, files(status("a.py", "M "), status("gone.py", "D ")))
        assert vcs.calls == [("reset", "a.py")]

    @pytest.mark.asyncio
    async def test_discard_declined(self, registry, vcs, prompter):
        prompter.confirms = [False]
        await registry.execute(C.DISCARD, files(status("a.py", " M")))
        assert vcs.calls == []

    @pytest.mark.asyncio
    async def test_discard_per_category(self, registry, vcs, prompter):
        prompter.confirms = [True]
        await registry.execute(C.DISCARD, files(
            status("unstaged.py", " M"),
            status("staged.py", "M "),
            status("partial.py", "MM"),
            status("added.py", "AM"),
        ))
        assert vcs.calls == [
            ("checkout", "unstaged.py", None, False),
            ("reset", "staged.py"),
            ("reset", "partial.py"),
            ("checkout", "partial.py", None, False),
            ("reset", "added.py"),
        ]

    @pytest.mark.asyncio
    async def test_discard_failure_continues(self, registry, vcs, prompter, notices):
        prompter.confirms = [True]
        vcs.errors["checkout"] = [GitCommandError("error: pathspec did not match")]
        await registry.execute(C.DISCARD, files(status("a.py", " M"), status("b.py", " M")))
        assert vcs.calls == [("checkout", "a.py", None, False), ("checkout", "b.py", None, False)]
        assert notices[0].level == Level.ERROR
        assert "a.py" in notices[0].message

    @pytest.mark.asyncio
    async def test_delete_confirmed(self, registry, prompter, documents, repo_path):
        prompter.confirms = [True]
        await registry.execute(C.DELETE, files(status("n.txt", "??")))
        assert documents.deleted == [str(repo_path / "n.txt")]

    @pytest.mark.asyncio
    async def test_open_refuses_deleted_file(self, registry, documents, notices):
        await registry.execute(C.OPEN, files(status("gone.py", " D"), status("a.py", " M")))
        assert documents.opened == []
        assert notices[-1].message == "Open File Failed"

    @pytest.mark.asyncio
    async def test_open(self, registry, documents, repo_path):
        await registry.execute(C.OPEN, files(status("a.py", " M")))
        assert documents.opened == [str(repo_path / "a.py")]

    @pytest.mark.asyncio
    async def test_ignore(self, registry, vcs):
        await registry.execute(C.IGNORE, files(status("n.txt", "??")))
        assert vcs.calls == [("ignore", "n.txt", False)]

    @pytest.mark.asyncio
    async def test_ignore_extension_confirms_each_extension(self, registry, vcs, prompter):
        prompter.confirms = [True, False]
        await registry.execute(C.IGNORE_EXTENSION, files(
            status("a.log", "??"), status("Makefile", "??"), status("b.tmp", "??"),
        ))
        assert vcs.calls == [("ignore", "a.log", True)]
        assert len(prompter.calls) == 2
        assert ".log" in prompter.calls[0][2]

    @pytest.mark.asyncio
    async def test_repeated_extension_confirmed_once(self, registry, vcs, prompter):
        prompter.confirms = [True, True]
        await registry.execute(C.IGNORE_EXTENSION, files(
            status("a.py", "??"), status("b.log", "??"), status("c.py", "??"),
        ))
        assert vcs.calls == [("ignore", "a.py", True), ("ignore", "b.log", True)]
        assert len(prompter.calls) == 2

    def test_ignore_extension_label_and_visibility(self, registry):
        args = files(status("a.log", "??"), status("b.csv", "??"))
        assert registry.label(C.IGNORE_EXTENSION, args) == "Ignore .log, .csv extensions (add to .gitignore)"
        assert registry.is_visible(C.IGNORE_EXTENSION, args)
        assert not registry.is_visible(C.IGNORE_EXTENSION, files(status("Makefile", "??")))
        same = files(status("a.py", "??"), status("b.py", "??"))
        assert registry.label(C.IGNORE_EXTENSION, same) == "Ignore .py extension (add to .gitignore)"

    def test_ignore_label_pluralized(self, registry):
        assert registry.label(C.IGNORE, files(status("a", "??"))) == "Ignore this file (add to .gitignore)"
        assert registry.label(C.IGNORE, files(status("a", "??"), status("b", "??"))) == \
            "Ignore these files (add to .gitignore)"


class TestDiffCommand:
    """Context diff opens views through the registry."""

    @pytest.mark.asyncio
    async def test_untracked_skipped(self, registry, views, content):
        args = FileDiffArgs(files=[FileDiffArgument("n.txt", status=StatusCategory.UNTRACKED)])
        await registry.execute(C.DIFF, args)
        assert views.views == {}
        assert content.calls == []

    @pytest.mark.asyncio
    async def test_staged_compares_index_with_head(self, registry, views, content):
        args = FileDiffArgs(files=[FileDiffArgument("a.py", status=StatusCategory.STAGED)])
        await registry.execute(C.DIFF, args)
        assert list(views.views) == ["diff-a.py-HEAD-INDEX"]
        assert set(content.calls) == {("a.py", "HEAD"), ("a.py", "INDEX")}

    @pytest.mark.asyncio
    async def test_unstaged_compares_working_with_head(self, registry, views):
        args = FileDiffArgs(files=[FileDiffArgument("a.py", status=StatusCategory.UNSTAGED)])
        await registry.execute(C.DIFF, args)
        view = views.views["diff-a.py-HEAD-WORKING"]
        assert "+x = 3" in view.content.render()


class TestRemoteCommands:
    """Push/pull/clone notices."""

    @pytest.mark.asyncio
    async def test_push_success(self, registry, vcs, notices):
        result = await registry.execute(CommandIDs.PUSH)
        assert result.success
        assert [n.level for n in notices] == [Level.RUNNING, Level.SUCCESS]
        assert notices[-1].message == "Successfully pushed"

    @pytest.mark.asyncio
    async def test_push_auth_declined_is_a_notice(self, registry, vcs, prompter, notices):
        vcs.errors["push"] = [GitCommandError("fatal: Authentication failed")]
        prompter.credentials = [None]
        assert await registry.execute(CommandIDs.PUSH) is None
        assert notices[-1].level == Level.ERROR
        assert notices[-1].message == "Failed to push"

    @pytest.mark.asyncio
    async def test_pull_refreshes_status(self, registry, vcs, repo):
        vcs.statuses = [status("a.py", " M")]
        await registry.execute(CommandIDs.PULL)
        assert repo.get_file("a.py") is not None

    @pytest.mark.asyncio
    async def test_clone_prompts_for_url(self, registry, vcs, prompter, repo_path):
        prompter.texts = ["https://example.com/org/repo.git"]
        await registry.execute(CommandIDs.CLONE, {})
        assert vcs.calls == [("clone", str(repo_path.parent), "https://example.com/org/repo.git", None)]

    @pytest.mark.asyncio
    async def test_clone_cancelled(self, registry, vcs, prompter):
        prompter.texts = [None]
        assert await registry.execute(CommandIDs.CLONE, {}) is None
        assert vcs.calls == []


class TestPublishCommand:
    """Publish enablement."""

    def test_enabled_with_document(self, repo, vcs, prompter, notifier):
        registry = CommandRegistry(notifier)
        documents = FakeDocumentHost(FakeDocument("/repo/nb.ipynb"))
        add_commands(registry, make_services(
            repo, vcs, prompter, notifier, documents=documents, publisher=lambda: None,
        ))
        assert registry.is_enabled(CommandIDs.PUBLISH)
