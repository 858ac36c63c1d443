import json

from fastapi import WebSocketDisconnect


def sent_messages(websocket) -> list[dict]:
    return [c.args[0] for c in websocket.send_json.call_args_list]


def sent_actions(websocket) -> list[str]:
    return [m["action"] for m in sent_messages(websocket)]


def frames(*messages, disconnect=True) -> list:
    """Scripted ``receive_text`` results, ending with a client disconnect."""
    result = [m if isinstance(m, str) else json.dumps(m) for m in messages]
    if disconnect:
        result.append(WebSocketDisconnect(code=1000))
    return result
