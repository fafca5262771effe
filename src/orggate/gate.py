from __future__ import annotations

import ipaddress
import logging
import socket
import ssl
import threading
import time
from typing import Optional

from .config import GateConfig
from .decision import DecisionEngine, Verdict

logger = logging.getLogger(__name__)

ALLOW_RESPONSE = (
    b"HTTP/1.1 200 OK\r\n"
    b"Content-Type: text/html; charset=UTF-8\r\n"
    b"Connection: close\r\n"
    b"\r\n"
    b"<h1>It Worked!</h1>"
)


def redirect_response(location: str) -> bytes:
    return (
        "HTTP/1.1 302 Found\r\n"
        "Content-Type: text/html; charset=UTF-8\r\n"
        f"Location: {location}\r\n"
        "Connection: close\r\n"
        "\r\n"
    ).encode("utf-8")


def normalize_peer(host: str) -> str:
    """Normalize a socket peer address; "::ffff:192.0.2.1" becomes "192.0.2.1"."""
    ip = ipaddress.ip_address(host)
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return str(ip.ipv4_mapped)
    return str(ip)


def build_tls_context(certfile: str, keyfile: str) -> ssl.SSLContext:
    ctx = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    ctx.load_cert_chain(certfile, keyfile)
    return ctx


class GateServer:
    """TCP (optionally TLS) listener answering each peer by organization.

    One thread per accepted connection. The verdict picks the response:
    200 for allowed peers, a 302 redirect for blocked ones.
    """

    def __init__(
        self,
        engine: DecisionEngine,
        config: GateConfig,
        tls_context: Optional[ssl.SSLContext] = None,
        close_delay: float = 0.01,
        read_timeout: float = 2.0,
    ) -> None:
        self.engine = engine
        self.config = config
        self.close_delay = close_delay
        self.read_timeout = read_timeout
        self.tls_context = tls_context
        if self.tls_context is None and config.listen_ssl:
            self.tls_context = build_tls_context(config.certificate, config.key)

        family, _, _, _, sockaddr = socket.getaddrinfo(
            config.listen_host or None,
            config.listen_port,
            type=socket.SOCK_STREAM,
            flags=socket.AI_PASSIVE,
        )[0]
        self.sock = socket.socket(family, socket.SOCK_STREAM)
        # allow immediate reuse of address after server restart
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if family == socket.AF_INET6:
            # "::" takes IPv4 peers too, as IPv4-mapped addresses
            self.sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
        self.sock.bind(sockaddr)
        self.sock.listen(socket.SOMAXCONN)
        self._stop = threading.Event()

    @property
    def address(self) -> tuple[str, int]:
        host, port = self.sock.getsockname()[:2]
        return host, port

    def serve(self) -> None:
        scheme = "TLS" if self.tls_context is not None else "TCP"
        host, port = self.address
        logger.info("Started %s server on %s:%d", scheme, host, port)
        try:
            while not self._stop.is_set():
                try:
                    conn, addr = self.sock.accept()
                except OSError as e:
                    if self._stop.is_set() or self.sock.fileno() == -1:
                        break
                    logger.error("Accept failed: %s", e)
                    continue
                logger.info("Connection from %s:%d", addr[0], addr[1])
                threading.Thread(
                    target=self._process, args=(conn, addr), daemon=True
                ).start()
        finally:
            self.sock.close()

    def shutdown(self) -> None:
        self._stop.set()
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # already closed
            pass
        self.sock.close()

    def _decide_logged(self, peer_ip: str) -> Verdict:
        """Run the decision for one peer, with timing and logging."""
        start = time.monotonic()
        verdict = self.engine.decide(peer_ip)
        logger.info(
            "Organization lookup for %s took %.3fs", peer_ip, time.monotonic() - start
        )
        if verdict.blocked:
            logger.info('Organization "%s" has been blocked', verdict.organization)
        else:
            logger.info("%s not in block list", verdict.organization or "-")
        return verdict

    def _read_request(self, conn: socket.socket) -> None:
        # Consume what the client sent so close() ends with FIN, not RST.
        try:
            conn.recv(65536)
        except socket.timeout:
            logger.debug("No request data within %.1fs", self.read_timeout)

    def _process(self, conn: socket.socket, addr) -> None:
        conn.settimeout(self.read_timeout)
        try:
            if self.tls_context is not None:
                conn = self.tls_context.wrap_socket(conn, server_side=True)
            self._read_request(conn)

            # empty block list: gating is off, no lookup at all
            blocked = False
            if self.config.blocked_organizations:
                blocked = self._decide_logged(normalize_peer(addr[0])).blocked

            if blocked:
                conn.sendall(redirect_response(self.config.redirect_url))
            else:
                conn.sendall(ALLOW_RESPONSE)
            time.sleep(self.close_delay)
        except OSError as e:
            logger.warning("Connection from %s failed: %s", addr[0], e)
        except Exception:
            logger.exception("Unexpected error handling %s", addr[0])
        finally:
            conn.close()
