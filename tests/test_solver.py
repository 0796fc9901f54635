import base64
from types import SimpleNamespace

import pytest

from calccore.config import Config
from calccore.domain import ImagePayload
from calccore.errors import ValidationError
from calccore.solver import CONNECTION_ERROR, NO_SOLUTION, MathSolver, build_contents, clean_response


class FakeModels:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate_content(self, model, contents):
        self.calls.append((model, contents))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.reply)


def fake_client(models: FakeModels):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def test_clean_response_strips_latex_delimiters():
    assert clean_response("$$x = 2$$ and \\[y\\]") == "x = 2 and y"
    assert clean_response("plain 5 kg") == "plain 5 kg"


def test_text_prompt_carries_query():
    contents = build_contents("5kg + 200g in g")
    assert isinstance(contents, str)
    assert '"5kg + 200g in g"' in contents
    assert "LaTeX" in contents


def test_nothing_to_solve():
    with pytest.raises(ValidationError):
        build_contents("   ")


def test_image_must_be_base64():
    with pytest.raises(ValidationError) as exc:
        build_contents("", ImagePayload(mime_type="image/png", data="!!not base64!!"))
    assert exc.value.code == "invalid_image"


def test_image_prompt_has_two_parts():
    image = ImagePayload(mime_type="image/png", data=base64.b64encode(b"\x89PNG fake").decode())
    parts = build_contents("show steps", image)
    assert len(parts) == 2
    assert "show steps" in parts[1].text


@pytest.mark.asyncio
async def test_solve_success():
    models = FakeModels(reply="$$sqrt(144) = 12$$")
    solver = MathSolver(client=fake_client(models), model="test-model")

    outcome = await solver.solve("sqrt(144)")

    assert outcome.solved
    assert outcome.text == "sqrt(144) = 12"
    assert models.calls[0][0] == "test-model"


@pytest.mark.asyncio
async def test_solve_empty_reply_apologises():
    solver = MathSolver(client=fake_client(FakeModels(reply="")))
    outcome = await solver.solve("2+2")
    assert not outcome.solved
    assert outcome.text == NO_SOLUTION


@pytest.mark.asyncio
async def test_solve_failure_apologises():
    solver = MathSolver(client=fake_client(FakeModels(error=RuntimeError("quota"))))
    outcome = await solver.solve("2+2")
    assert not outcome.solved
    assert outcome.text == CONNECTION_ERROR


@pytest.mark.asyncio
async def test_missing_api_key_apologises(monkeypatch):
    monkeypatch.setattr(Config, "SOLVER_API_KEY", None)
    outcome = await MathSolver().solve("2+2")
    assert outcome.text == CONNECTION_ERROR
