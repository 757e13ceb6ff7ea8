import pytest

from rag_toolchain.chains.chat_history import ChatHistory, ChatHistoryChain
from rag_toolchain.chains.retry import RetryPolicy
from rag_toolchain.chains.types import ChainState
from rag_toolchain.clients.scripted import ScriptedChatClient
from rag_toolchain.common.cancellation import CancellationScope
from rag_toolchain.common.types import PromptMessage, Role
from rag_toolchain.core.exceptions import Cancelled, ChainError, ProviderError, ProviderErrorKind


@pytest.mark.asyncio
async def test_history_is_sent_and_extended():
    client = ScriptedChatClient(["Hello Ada.", "Your name is Ada."])
    chain = ChatHistoryChain(client, system_prompt="You are friendly.")
    history = ChatHistory()

    await chain.invoke("My name is Ada.", history)
    response = await chain.invoke("What is my name?", history)

    assert response.content == "Your name is Ada."
    second_call = client.calls[1]
    assert [m.role for m in second_call] == [Role.SYSTEM, Role.HUMAN, Role.AI, Role.HUMAN]
    assert second_call[1].content == "My name is Ada."
    assert second_call[2].content == "Hello Ada."
    assert len(history) == 4
    assert history.messages[-1] == response


@pytest.mark.asyncio
async def test_without_system_prompt():
    client = ScriptedChatClient(["hi"])
    chain = ChatHistoryChain(client)

    await chain.invoke("hello", ChatHistory())

    assert client.calls[0] == [PromptMessage.human("hello")]


def test_system_prompt_message_must_have_system_role():
    prompt = PromptMessage.system("Be brief.")

    assert ChatHistoryChain(ScriptedChatClient(), system_prompt=prompt).config.system_prompt is prompt
    with pytest.raises(ValueError):
        ChatHistoryChain(ScriptedChatClient(), system_prompt=PromptMessage.human("Be brief."))


@pytest.mark.asyncio
async def test_run_skips_retrieval_states():
    chain = ChatHistoryChain(ScriptedChatClient(["ok"]))

    run = await chain.run("hello", ChatHistory())

    assert run.states == [ChainState.IDLE, ChainState.COMPLETING, ChainState.DONE]


@pytest.mark.asyncio
async def test_failed_turn_leaves_history_untouched():
    error = ProviderError(ProviderErrorKind.UNAUTHORIZED)
    chain = ChatHistoryChain(ScriptedChatClient([error]))
    history = ChatHistory([PromptMessage.human("earlier"), PromptMessage.ai("reply")])

    with pytest.raises(ChainError) as exc_info:
        await chain.invoke("next", history)

    assert exc_info.value.stage == ChainState.COMPLETING
    assert exc_info.value.cause is error
    assert [m.content for m in history] == ["earlier", "reply"]


@pytest.mark.asyncio
async def test_retry_policy_applies_to_completion():
    client = ScriptedChatClient([ProviderError(ProviderErrorKind.RATE_LIMITED), "ok"])
    chain = ChatHistoryChain(client, retry=RetryPolicy(multiplier=0, min_wait=0, max_wait=0))

    run = await chain.run("hello", ChatHistory())

    assert run.response.content == "ok"
    assert run.attempts[ChainState.COMPLETING] == 2


@pytest.mark.asyncio
async def test_deadline_cancels_completion():
    chain = ChatHistoryChain(ScriptedChatClient(["late"], delay=10))
    history = ChatHistory()

    with pytest.raises(ChainError) as exc_info:
        await chain.invoke("hello", history, cancellation=CancellationScope(timeout=0.05))

    assert isinstance(exc_info.value.cause, Cancelled)
    assert len(history) == 0


@pytest.mark.asyncio
async def test_one_chain_serves_separate_histories():
    chain = ChatHistoryChain(ScriptedChatClient(["one", "two"]))
    first, second = ChatHistory(), ChatHistory()

    await chain.invoke("to first", first)
    await chain.invoke("to second", second)

    assert [m.content for m in first] == ["to first", "one"]
    assert [m.content for m in second] == ["to second", "two"]


def test_history_messages_are_a_copy():
    history = ChatHistory([PromptMessage.human("a")])

    history.messages.append(PromptMessage.human("b"))
    assert len(history) == 1

    history.clear()
    assert len(history) == 0
