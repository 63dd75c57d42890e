"""
Stand-in for deltachat-rpc-server speaking the same newline JSON-RPC protocol.

Only the standard library is used so the script runs under any interpreter.
Each request is answered from its own thread, so slow calls do not block
fast ones and responses may arrive out of order, like with the real server.
"""
import json
import os
import queue
import sys
import threading
import time

NO_RESPONSE = object()


class RpcFailure(Exception):
    def __init__(self, message, code=-1):
        super().__init__(message)
        self.code = code
        self.message = message


class FakeServer:
    """Minimal account store plus a few methods to provoke transport edge cases"""

    def __init__(self):
        self.write_lock = threading.Lock()
        self.state_lock = threading.Lock()
        self.accounts = {}
        self.next_account_id = 1
        self.next_msg_id = 10
        self.events = queue.Queue()

    def send(self, message):
        self.send_raw(json.dumps(message))

    def send_raw(self, line):
        with self.write_lock:
            sys.stdout.write(line + "\n")
            sys.stdout.flush()

    def push(self, account_id, event):
        self.events.put({"contextId": account_id, "event": event})

    def account(self, account_id):
        if account_id not in self.accounts:
            raise RpcFailure(f"account {account_id} does not exist")
        return self.accounts[account_id]

    def handle(self, request):
        request_id = request.get("id")
        method = request.get("method")
        handler = getattr(self, "rpc_" + str(method), None)

        if handler is None:
            self.send({
                "jsonrpc": "2.0",
                "id": request_id,
                "error": {"code": -32601, "message": f"Method not found: {method}"},
            })
            return

        try:
            result = handler(*request.get("params", []))
        except RpcFailure as e:
            self.send({
                "jsonrpc": "2.0",
                "id": request_id,
                "error": {"code": e.code, "message": e.message},
            })
            return

        if result is not NO_RESPONSE:
            self.send({"jsonrpc": "2.0", "id": request_id, "result": result})

    def serve(self):
        while True:
            line = sys.stdin.readline()
            if not line:
                return
            if not line.strip():
                continue
            request = json.loads(line)
            threading.Thread(target=self.handle, args=(request,), daemon=True).start()

    ## Transport edge cases

    def rpc_echo(self, *params):
        return list(params)

    def rpc_sleep(self, seconds, value=None):
        time.sleep(seconds)
        return value

    def rpc_fail(self, code, message, data=None):
        raise RpcFailure(message, code)

    def rpc_notify(self):
        self.send({"jsonrpc": "2.0", "method": "event", "params": {"kind": "Info"}})
        return "after notification"

    def rpc_garbage(self):
        self.send_raw("this is not json")
        return NO_RESPONSE

    def rpc_exit(self, code=3):
        sys.stdout.flush()
        os._exit(code)

    def rpc_env(self, name):
        return os.environ.get(name)

    def rpc_stderr(self, text):
        sys.stderr.write(text + "\n")
        sys.stderr.flush()
        return None

    def rpc_push_event(self, account_id, event):
        self.push(account_id, event)
        return None

    ## Core server subset

    def rpc_get_system_info(self):
        return {"deltachat_core_version": "v0.0.0-fake", "arch": "64"}

    def rpc_get_next_event(self):
        return self.events.get()

    def rpc_add_account(self):
        with self.state_lock:
            account_id = self.next_account_id
            self.next_account_id += 1
            self.accounts[account_id] = {"config": {}, "messages": {}}
        return account_id

    def rpc_get_all_account_ids(self):
        return sorted(self.accounts)

    def rpc_set_config(self, account_id, key, value):
        config = self.account(account_id)["config"]
        if value is None:
            config.pop(key, None)
        else:
            config[key] = value
        return None

    def rpc_batch_set_config(self, account_id, values):
        for key, value in values.items():
            self.rpc_set_config(account_id, key, value)
        return None

    def rpc_get_config(self, account_id, key):
        return self.account(account_id)["config"].get(key)

    def rpc_batch_get_config(self, account_id, keys):
        config = self.account(account_id)["config"]
        return {key: config.get(key) for key in keys}

    def rpc_is_configured(self, account_id):
        return self.account(account_id)["config"].get("configured") == "1"

    def rpc_configure(self, account_id):
        config = self.account(account_id)["config"]
        if not config.get("addr") or not config.get("mail_pw"):
            raise RpcFailure("Missing email address or password")
        config["configured"] = "1"
        self.push(account_id, {"kind": "ConfigureProgress", "progress": 1000, "comment": None})
        return None

    def rpc_start_io(self, account_id):
        self.account(account_id)
        return None

    def rpc_stop_io(self, account_id):
        return None

    def rpc_start_io_for_all_accounts(self):
        return None

    def rpc_stop_io_for_all_accounts(self):
        return None

    def rpc_add_device_message(self, account_id, label, msg):
        messages = self.account(account_id)["messages"]
        with self.state_lock:
            msg_id = self.next_msg_id
            self.next_msg_id += 1
        messages[msg_id] = {
            "id": msg_id,
            "chatId": 11,
            "fromId": 5,
            "text": (msg or {}).get("text", ""),
            "viewType": "Text",
        }
        return msg_id

    def rpc_get_message(self, account_id, msg_id):
        messages = self.account(account_id)["messages"]
        if msg_id not in messages:
            raise RpcFailure(f"message {msg_id} does not exist")
        return messages[msg_id]

    def rpc_get_next_msgs(self, account_id):
        account = self.account(account_id)
        last = int(account["config"].get("last_msg_id", "0"))
        return sorted(msg_id for msg_id in account["messages"] if msg_id > last)

    def rpc_get_chat_securejoin_qr_code(self, account_id, chat_id):
        addr = self.account(account_id)["config"].get("addr", "")
        return f"OPENPGP4FPR:FAKE#a={addr}"

    def rpc_make_vcard(self, account_id, contacts):
        addr = self.account(account_id)["config"].get("addr", "")
        return f"BEGIN:VCARD\nEMAIL:{addr}\nEND:VCARD\n"

    def rpc_import_vcard_contents(self, account_id, vcard):
        self.account(account_id)
        return [10]

    def rpc_create_chat_by_contact_id(self, account_id, contact_id):
        self.account(account_id)
        return 12 if contact_id != 1 else 10

    def rpc_get_basic_chat_info(self, account_id, chat_id):
        return {"id": chat_id, "name": "Saved messages", "profileImage": "/tmp/saved.png"}


if __name__ == "__main__":
    if "--exit-immediately" in sys.argv:
        sys.exit(1)

    FakeServer().serve()
