"""database initialization helpers."""

from studio_server.graph_db import init_db as init_graph_db
from studio_server.node_db import init_db as init_node_db
from studio_server.state_db import init_db as init_state_db


def init_all() -> None:
    """initialize all sqlite tables."""
    init_node_db()
    init_graph_db()
    init_state_db()
