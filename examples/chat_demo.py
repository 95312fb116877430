"""Minimal demonstration of the response orchestrator."""

import asyncio

from chat_core.api.service import generate_reply, get_settings_guard

if __name__ == "__main__":
    get_settings_guard().subscribe(lambda event: print("Open API settings:", event.reason, event.provider_id))
    history = [{"role": "user", "content": "请用三句话介绍一下 Python 的 asyncio"}]
    reply = asyncio.run(generate_reply(history))
    print("User:", history[-1]["content"])
    print("Assistant:", reply.get("html") or reply.get("error"))
