# onionnet/__main__.py
import argparse
import logging

from onionnet.cli import OnionRoutingCLI, run_demo
from onionnet.config import NetworkConfig
from onionnet.network import AddressResolver, HttpNetwork, HttpRegistryClient
from onionnet.registry import NodeRegistry
from onionnet.router import OnionRouter
from onionnet.user import User
from onionnet.web import create_registry_app, create_router_app, create_user_app

log_format = "%(levelname)s: %(message)s"
log_levels = {None: logging.ERROR, 1: logging.WARNING, 2: logging.INFO}


def _config(argv):
    config = NetworkConfig.from_env()
    if argv.host is not None:
        config.host = argv.host
    if argv.registry_port is not None:
        config.registry_port = argv.registry_port
    if argv.router_port is not None:
        config.base_router_port = argv.router_port
    if argv.user_port is not None:
        config.base_user_port = argv.user_port
    return config


def serve_registry(config):
    app = create_registry_app(NodeRegistry())
    logging.info(f"[Registry] Listening on port {config.registry_port}")
    app.run(host=config.host, port=config.registry_port, threaded=True)


def serve_router(config, node_id):
    resolver = AddressResolver(config)
    router = OnionRouter(node_id, HttpNetwork(resolver))
    router.register(HttpRegistryClient(resolver))
    port = config.base_router_port + node_id
    logging.info(f"[Router {node_id}] Listening on port {port}")
    create_router_app(router).run(host=config.host, port=port, threaded=True)


def serve_user(config, user_id):
    resolver = AddressResolver(config)
    user = User(user_id, HttpNetwork(resolver), HttpRegistryClient(resolver))
    port = config.base_user_port + user_id
    logging.info(f"[User {user_id}] Listening on port {port}")
    create_user_app(user).run(host=config.host, port=port, threaded=True)


def main(args=None):
    parser = argparse.ArgumentParser(prog="onionnet")
    parser.add_argument('-v', action='count',
        help='Verbose output (up to -vvv)')
    parser.add_argument('--host', default=None,
        help='Host every service binds to and is reached at.')
    parser.add_argument('--registry-port', type=int, default=None)
    parser.add_argument('--router-port', type=int, default=None,
        help='Base port for routers (router N listens on base + N).')
    parser.add_argument('--user-port', type=int, default=None,
        help='Base port for users (user N listens on base + N).')

    commands = parser.add_subparsers(dest='command', required=True)
    commands.add_parser('registry', help='Run the node registry.')
    router = commands.add_parser('router', help='Run one onion router.')
    router.add_argument('id', type=int)
    user = commands.add_parser('user', help='Run one user endpoint.')
    user.add_argument('id', type=int)
    demo = commands.add_parser('demo', help='Send two messages over an in-process network.')
    demo.add_argument('-n', '--nodes', type=int, default=5)
    shell = commands.add_parser('shell', help='Interactive shell over an in-process network.')
    shell.add_argument('-n', '--nodes', type=int, default=5)

    argv = parser.parse_args(args)
    logging.basicConfig(
        format=log_format, level=log_levels.get(argv.v, logging.DEBUG))

    config = _config(argv)
    if argv.command == 'registry':
        serve_registry(config)
    elif argv.command == 'router':
        serve_router(config, argv.id)
    elif argv.command == 'user':
        serve_user(config, argv.id)
    elif argv.command == 'demo':
        run_demo(argv.nodes)
    elif argv.command == 'shell':
        OnionRoutingCLI(argv.nodes).start()


if __name__ == '__main__':
    main()
