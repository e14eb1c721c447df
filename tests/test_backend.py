import os
import subprocess

import httpx
import openai
import pytest
import requests

from jd_organizer.backend import OllamaBackend
from jd_organizer.config import Settings
from jd_organizer.errors import InferenceError, StartupError


def create_mock_completion(mocker, content):
    mock_choice = mocker.MagicMock()
    mock_choice.message.content = content
    mock_response = mocker.MagicMock()
    mock_response.choices = [mock_choice]
    return mock_response


def create_mock_response(mocker, *, ok=True, json_data=None, json_error=None):
    response = mocker.MagicMock()
    response.ok = ok
    if ok:
        response.raise_for_status.return_value = None
    else:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def settings(mocker):
    mocker.patch.dict(
        os.environ,
        {"OLLAMA_BASE_URL": "http://ollama:11434/", "MAX_RETRIES": "2"},
        clear=True,
    )
    return Settings()


@pytest.fixture
def client(mocker):
    return mocker.MagicMock()


@pytest.fixture
def backend(settings, client, mocker):
    mocker.patch("jd_organizer.utils._sleep_backoff")
    return OllamaBackend(settings, client=client)


def test_is_available_probes_tags_with_short_timeout(backend, mocker):
    get = mocker.patch.object(
        backend._session, "get", return_value=create_mock_response(mocker)
    )

    assert backend.is_available() is True
    get.assert_called_once_with("http://ollama:11434/api/tags", timeout=5.0)


def test_is_available_false_on_connection_error(backend, mocker):
    mocker.patch.object(
        backend._session,
        "get",
        side_effect=requests.exceptions.ConnectionError("refused"),
    )

    assert backend.is_available() is False


def test_is_available_false_on_error_status(backend, mocker):
    mocker.patch.object(
        backend._session, "get", return_value=create_mock_response(mocker, ok=False)
    )

    assert backend.is_available() is False


def test_list_models_extracts_names(backend, mocker):
    payload = {
        "models": [
            {"name": "llama3.2:1b", "size": 1},
            {"name": "gemma3:12b"},
            {"size": 3},
            "garbage",
        ]
    }
    mocker.patch.object(
        backend._session,
        "get",
        return_value=create_mock_response(mocker, json_data=payload),
    )

    assert backend.list_models() == ["llama3.2:1b", "gemma3:12b"]


def test_list_models_retries_connection_errors(backend, mocker):
    get = mocker.patch.object(
        backend._session,
        "get",
        side_effect=[
            requests.exceptions.ConnectionError("flaky"),
            create_mock_response(mocker, json_data={"models": []}),
        ],
    )

    assert backend.list_models() == []
    assert get.call_count == 2


def test_list_models_raises_inference_error_after_retries(backend, mocker):
    get = mocker.patch.object(
        backend._session,
        "get",
        side_effect=requests.exceptions.Timeout("slow"),
    )

    with pytest.raises(InferenceError, match="Failed to fetch models"):
        backend.list_models()
    assert get.call_count == 2


@pytest.mark.parametrize(
    "response_kwargs",
    [{"ok": False}, {"json_error": ValueError("not json")}],
)
def test_list_models_wraps_bad_responses(backend, mocker, response_kwargs):
    mocker.patch.object(
        backend._session,
        "get",
        return_value=create_mock_response(mocker, **response_kwargs),
    )

    with pytest.raises(InferenceError):
        backend.list_models()


def test_generate_returns_raw_text(backend, client, mocker):
    client.chat.completions.create.return_value = create_mock_completion(
        mocker, 'Here you go: {"category": "x"}'
    )

    text = backend.generate("llama3.2:1b", "prompt text", timeout=30.0)

    assert text == 'Here you go: {"category": "x"}'
    _, kwargs = client.chat.completions.create.call_args
    assert kwargs["model"] == "llama3.2:1b"
    assert kwargs["messages"] == [{"role": "user", "content": "prompt text"}]
    assert kwargs["timeout"] == 30.0
    assert kwargs["temperature"] == 0.3
    assert kwargs["top_p"] == 0.9
    assert kwargs["max_tokens"] == 500


def test_generate_timeout_raises_inference_error(backend, client):
    request = httpx.Request("POST", "http://ollama:11434/v1/chat/completions")
    client.chat.completions.create.side_effect = openai.APITimeoutError(request=request)

    with pytest.raises(InferenceError, match="Request timeout"):
        backend.generate("llama3.2:1b", "prompt", timeout=30.0)


def test_generate_status_error_raises_inference_error(backend, client):
    request = httpx.Request("POST", "http://ollama:11434/v1/chat/completions")
    response = httpx.Response(500, request=request)
    client.chat.completions.create.side_effect = openai.InternalServerError(
        "server error", response=response, body=None
    )

    with pytest.raises(InferenceError, match="Generation failed"):
        backend.generate("llama3.2:1b", "prompt", timeout=30.0)


def test_generate_empty_content_is_an_error(backend, client, mocker):
    client.chat.completions.create.return_value = create_mock_completion(mocker, None)

    with pytest.raises(InferenceError, match="Invalid response format"):
        backend.generate("llama3.2:1b", "prompt", timeout=30.0)


def test_launch_spawns_configured_command(backend, mocker):
    popen = mocker.patch("jd_organizer.backend.subprocess.Popen")

    backend.launch()

    popen.assert_called_once_with(
        ["ollama", "serve"],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )


def test_launch_missing_binary_raises_startup_error(backend, mocker):
    mocker.patch(
        "jd_organizer.backend.subprocess.Popen",
        side_effect=FileNotFoundError("ollama"),
    )

    with pytest.raises(StartupError, match="Failed to spawn Ollama process"):
        backend.launch()


def test_close_terminates_spawned_process(backend, mocker):
    process = mocker.MagicMock()
    process.poll.return_value = None
    mocker.patch("jd_organizer.backend.subprocess.Popen", return_value=process)
    backend.launch()

    backend.close()

    process.terminate.assert_called_once_with()
    process.wait.assert_called_once_with(timeout=5.0)
    process.kill.assert_not_called()


def test_close_kills_process_that_ignores_terminate(backend, mocker):
    process = mocker.MagicMock()
    process.poll.return_value = None
    process.wait.side_effect = [subprocess.TimeoutExpired("ollama", 5.0), 0]
    mocker.patch("jd_organizer.backend.subprocess.Popen", return_value=process)
    backend.launch()

    backend.close()

    process.terminate.assert_called_once_with()
    process.kill.assert_called_once_with()


def test_close_leaves_exited_process_alone(backend, mocker):
    process = mocker.MagicMock()
    process.poll.return_value = 1
    mocker.patch("jd_organizer.backend.subprocess.Popen", return_value=process)
    backend.launch()

    backend.close()
    backend.close()

    process.terminate.assert_not_called()
    process.kill.assert_not_called()


def test_close_without_launch_only_closes_clients(backend, client, mocker):
    session_close = mocker.patch.object(backend._session, "close")

    backend.close()

    session_close.assert_called_once_with()
    client.close.assert_called_once_with()


def test_default_client_points_at_openai_compatible_endpoint(settings):
    backend = OllamaBackend(settings)
    try:
        assert str(backend._client.base_url) == "http://ollama:11434/v1/"
        assert backend._client.max_retries == 0
    finally:
        backend.close()
