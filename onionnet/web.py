# onionnet/web.py
"""
HTTP surfaces of the registry, the routers and the users.
"""
import logging

import flask

from onionnet.errors import OnionError

logger = logging.getLogger(__name__)


def _json_body():
    body = flask.request.get_json(silent=True)
    if not isinstance(body, dict):
        flask.abort(400, description="Expected a JSON object body")
    return body


def _base_app(name):
    app = flask.Flask(name)

    @app.errorhandler(OnionError)
    def handle_onion_error(e):
        logger.warning(f"[{name}] {flask.request.method} {flask.request.path} failed: {type(e).__name__}: {e}")
        return flask.jsonify(error=str(e), type=type(e).__name__), e.status_code

    @app.errorhandler(400)
    def handle_bad_request(e):
        return flask.jsonify(error=e.description, type="BadRequest"), 400

    @app.route("/status")
    def status():
        return "live"

    return app


# -----------------------------
# Registry
# -----------------------------
def create_registry_app(registry):
    app = _base_app("onionnet.registry")
    app.registry = registry

    @app.route("/getNodeRegistry")
    def get_node_registry():
        return flask.jsonify(nodes=[node.to_dict() for node in registry.list_nodes()])

    @app.route("/registerNode", methods=["POST"])
    def register_node():
        body = _json_body()
        node_id, pub_key = body.get("nodeId"), body.get("pubKey")
        if node_id is None or not pub_key:
            flask.abort(400, description="nodeId and pubKey are required")
        node = registry.register(node_id, pub_key)
        return flask.jsonify(message="Node registered successfully", node=node.to_dict()), 201

    return app


# -----------------------------
# Router
# -----------------------------
def create_router_app(router):
    app = _base_app(f"onionnet.router.{router.node_id}")
    app.router = router
    state = router.state

    @app.route("/getLastReceivedEncryptedMessage")
    def get_last_received_encrypted_message():
        return flask.jsonify(result=state.last_received_encrypted_message)

    @app.route("/getLastReceivedDecryptedMessage")
    def get_last_received_decrypted_message():
        return flask.jsonify(result=state.last_received_decrypted_message)

    @app.route("/getLastMessageDestination")
    def get_last_message_destination():
        destination = state.last_message_destination
        return flask.jsonify(result=destination.to_dict() if destination else None)

    @app.route("/getPrivateKey")
    def get_private_key():
        return flask.jsonify(result=router.prv_key)

    @app.route("/message", methods=["POST"])
    def message():
        body = _json_body()
        return flask.jsonify(result=router.receive(body.get("message")))

    return app


# -----------------------------
# User
# -----------------------------
def create_user_app(user):
    app = _base_app(f"onionnet.user.{user.user_id}")
    app.user = user
    state = user.state

    @app.route("/getLastReceivedMessage")
    def get_last_received_message():
        return flask.jsonify(result=state.last_received_message)

    @app.route("/getLastSentMessage")
    def get_last_sent_message():
        return flask.jsonify(result=state.last_sent_message)

    @app.route("/getLastCircuit")
    def get_last_circuit():
        return flask.jsonify(result=state.last_circuit)

    @app.route("/message", methods=["POST"])
    def message():
        body = _json_body()
        received = body.get("message")
        if not isinstance(received, str):
            flask.abort(400, description="message must be a string")
        return flask.jsonify(result=user.receive(received))

    @app.route("/sendMessage", methods=["POST"])
    def send_message():
        body = _json_body()
        message, destination = body.get("message"), body.get("destinationUserId")
        if not isinstance(message, str) or isinstance(destination, bool) or not isinstance(destination, int):
            flask.abort(400, description="message (string) and destinationUserId (integer) are required")
        try:
            circuit = user.send_message(message, destination)
        except ValueError as e:
            flask.abort(400, description=str(e))
        return flask.jsonify(success=True, message="Message sent successfully", circuit=circuit), 200

    return app
