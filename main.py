import argparse
import logging

from werkzeug.serving import make_server

from blob_proxy.env import env_class
from blob_proxy.proxy import create_app

logger = logging.getLogger("blob_proxy")


def parse_args(argv, env:env_class):
	parser = argparse.ArgumentParser(description="Serve GitHub blob links as raw files")
	parser.add_argument("--host", default=env.host, help=f"address to listen on (default: {env.host})")
	parser.add_argument("--port", type=int, default=env.port, help=f"port to listen on (default: {env.port})")
	parser.add_argument("--log-level", default=env.log_level, help=f"logging level (default: {env.log_level})")
	return parser.parse_args(argv)


def main(argv = None):
	env = env_class()
	args = parse_args(argv, env)

	logging.basicConfig(
		level=args.log_level.upper(),
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)

	app = create_app(env)
	server = make_server(args.host, args.port, app, threaded=True)

	logger.info("listening on http://%s:%s", args.host, args.port)
	try:
		server.serve_forever()
	except KeyboardInterrupt:
		pass
	finally:
		server.server_close()
		app.extensions["blob_proxy_fetcher"].close()
		logger.info("server stopped")


if __name__ == "__main__":
	main()
