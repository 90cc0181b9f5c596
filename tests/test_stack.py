import pytest

from roulette.candidate import Candidate
from roulette.stack import EMPTY, CardStack, EmptyStackError, Head


def cand(cid: str) -> Candidate:
    return Candidate(id=cid, title=f"Intern {cid}", organization="Acme")


def test_head_and_pop_follow_fifo_order():
    stack = CardStack([cand("a"), cand("b"), cand("c")])
    assert stack.head() == Head(cand("a"))
    assert stack.pop_head().id == "a"
    assert stack.ids() == ["b", "c"]


def test_head_of_empty_stack_is_explicit_empty():
    stack = CardStack()
    head = stack.head()
    assert head is EMPTY
    assert head.is_empty
    assert len(stack) == 0


def test_pop_head_on_empty_stack_raises():
    with pytest.raises(EmptyStackError):
        CardStack().pop_head()


def test_visible_window_does_not_mutate():
    stack = CardStack([cand(x) for x in "abcde"])
    window = stack.visible_window(3)
    assert [c.id for c in window] == ["a", "b", "c"]
    assert len(stack) == 5
    assert stack.visible_window(10) == tuple(stack.visible_window(5))


def test_append_skips_ids_already_present():
    stack = CardStack([cand("a"), cand("b")])
    added = stack.append([cand("b"), cand("c"), cand("c"), cand("d")])
    assert added == 2
    assert stack.ids() == ["a", "b", "c", "d"]
    # appending the same batch again is a no-op
    assert stack.append([cand("c"), cand("d")]) == 0
    assert stack.ids() == ["a", "b", "c", "d"]


def test_reset_replaces_everything():
    stack = CardStack([cand("p"), cand("q")])
    stack.reset([cand("r"), cand("s"), cand("t")])
    assert stack.ids() == ["r", "s", "t"]
    assert "p" not in stack
    assert "s" in stack
