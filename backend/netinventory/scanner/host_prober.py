import asyncio
import logging
import re
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

PROC_ARP_PATH = Path("/proc/net/arp")

# Format varies by OS, common pattern: hostname (IP) at MAC
ARP_LINE_PATTERN = re.compile(
    r"\((\d+\.\d+\.\d+\.\d+)\)\s+at\s+([0-9a-fA-F]{1,2}(?:[:-][0-9a-fA-F]{1,2}){5})"
)

IGNORED_MACS = {"00:00:00:00:00:00", "ff:ff:ff:ff:ff:ff"}


def normalize_mac(mac: str) -> str:
    """
    Normalize a MAC address for comparisons.

    Accepts "AA-BB-CC-DD-EE-FF", "aa:bb:cc:dd:ee:ff" and the unpadded
    "a:b:c:d:e:f" form printed by BSD arp; returns lower-case,
    colon-delimited, two digits per octet.
    """
    parts = mac.strip().lower().replace('-', ':').split(':')
    if len(parts) != 6 or not all(1 <= len(p) <= 2 for p in parts):
        raise ValueError(f"Invalid MAC address: {mac!r}")
    try:
        return ':'.join(f"{int(p, 16):02x}" for p in parts)
    except ValueError:
        raise ValueError(f"Invalid MAC address: {mac!r}") from None


def mac_key(mac: str) -> str:
    """Comparison key for a MAC; malformed values fall back to lower-case."""
    try:
        return normalize_mac(mac)
    except ValueError:
        return mac.strip().lower()


def parse_proc_arp(content: str, ip: str) -> Optional[str]:
    """Find the MAC for ip in /proc/net/arp content."""
    # IP address  HW type  Flags  HW address  Mask  Device
    for line in content.splitlines()[1:]:
        fields = line.split()
        if len(fields) < 4 or fields[0] != ip:
            continue
        if fields[2] == "0x0":  # incomplete entry
            return None
        try:
            mac = normalize_mac(fields[3])
        except ValueError:
            return None
        return None if mac in IGNORED_MACS else mac
    return None


def parse_arp_output(output: str, ip: str) -> Optional[str]:
    """Find the MAC for ip in `arp -an` output."""
    for line in output.split("\n"):
        match = ARP_LINE_PATTERN.search(line)
        if match and match.group(1) == ip:
            mac = normalize_mac(match.group(2))
            return None if mac in IGNORED_MACS else mac
    return None


class HostProber:
    """Ping a single address and read its MAC from the ARP cache."""

    def __init__(self, ping_timeout: int = 1, call_timeout: float = 2.0):
        self.ping_timeout = ping_timeout
        self.call_timeout = call_timeout

    def _ping_command(self, ip: str) -> list[str]:
        if sys.platform == "darwin":
            # macOS takes the reply wait in milliseconds
            return ["ping", "-c", "1", "-W", str(self.ping_timeout * 1000), ip]
        return ["ping", "-c", "1", "-W", str(self.ping_timeout), ip]

    async def ping_host(self, ip: str) -> bool:
        """Ping a single host."""
        try:
            process = await asyncio.create_subprocess_exec(
                *self._ping_command(ip),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL
            )
        except OSError as e:
            logger.debug("Could not start ping for %s: %s", ip, e)
            return False

        try:
            await asyncio.wait_for(process.wait(), timeout=self.call_timeout)
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            return False

        return process.returncode == 0

    async def resolve_mac(self, ip: str) -> Optional[str]:
        """Look up the MAC of ip in the local ARP cache."""
        if PROC_ARP_PATH.exists():
            try:
                return parse_proc_arp(PROC_ARP_PATH.read_text(), ip)
            except OSError as e:
                logger.debug("Could not read %s: %s", PROC_ARP_PATH, e)

        try:
            process = await asyncio.create_subprocess_exec(
                "arp", "-an", ip,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL
            )
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.call_timeout)
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug("ARP lookup failed for %s: %s", ip, e)
            return None

        return parse_arp_output(stdout.decode(errors="replace"), ip)

    async def probe(self, ip: str) -> Optional[str]:
        """
        Probe one address.

        Returns:
            The normalized MAC when the host answers and has an ARP entry,
            None otherwise
        """
        if not await self.ping_host(ip):
            return None

        mac = await self.resolve_mac(ip)
        if mac is None:
            logger.debug("%s answered but has no ARP entry", ip)
        return mac
