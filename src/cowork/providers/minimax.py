from __future__ import annotations

from cowork.providers.openai import OpenAIProvider


class MinimaxProvider(OpenAIProvider):
    """Minimax chatcompletion_v2.

    Same envelope as OpenAI but read in one shot: the reply is delivered to
    ``on_delta`` once, after the full body has arrived.
    """

    name = "minimax"
    incremental = False
    path = "/v1/text/chatcompletion_v2"
