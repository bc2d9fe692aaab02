"""
Container Statistics Calculator

Derives usage figures (CPU percent, memory percent, summed network and
block I/O) from a raw Docker stats sample, for the stats channel.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict

from docker_logentries.core.logging import get_logger


logger = get_logger(__name__)

# Some kernels report an "unlimited" memory limit close to max int64
UNLIMITED_MEMORY = 9223372036854775807 // 2


@dataclass
class CpuStats:
    """CPU statistics data"""
    percent: float
    online_cpus: int
    throttled_periods: Optional[int] = None


@dataclass
class MemoryStats:
    """Memory statistics data"""
    usage: int
    limit: int
    percent: float
    cache: Optional[int] = None


@dataclass
class NetworkStats:
    """Network I/O statistics, summed over interfaces"""
    rx_bytes: int
    tx_bytes: int


@dataclass
class BlockIoStats:
    """Block I/O statistics"""
    read_bytes: int
    write_bytes: int


class StatsCalculator:
    """Calculates derived figures from raw Docker stats"""
    
    def calculate(self, raw_stats: Dict[str, Any]) -> Dict[str, Any]:
        """
        Calculate derived statistics
        
        Args:
            raw_stats: Raw statistics from the Docker API
            
        Returns:
            Dictionary with cpu, memory, network, blkio and pids sections
        """
        return {
            "cpu": asdict(self._calculate_cpu_stats(raw_stats)),
            "memory": asdict(self._calculate_memory_stats(raw_stats)),
            "network": asdict(self._calculate_network_stats(raw_stats)),
            "blkio": asdict(self._calculate_block_io_stats(raw_stats)),
            "pids": (raw_stats.get("pids_stats") or {}).get("current", 0),
        }
    
    def _calculate_cpu_stats(self, stats: Dict[str, Any]) -> CpuStats:
        """Calculate CPU usage percentage"""
        cpu_stats = stats.get("cpu_stats") or {}
        precpu_stats = stats.get("precpu_stats") or {}
        
        cpu_usage = cpu_stats.get("cpu_usage") or {}
        precpu_usage = precpu_stats.get("cpu_usage") or {}
        
        cpu_delta = cpu_usage.get("total_usage", 0) - precpu_usage.get("total_usage", 0)
        system_delta = cpu_stats.get("system_cpu_usage", 0) - precpu_stats.get("system_cpu_usage", 0)
        
        online_cpus = cpu_stats.get("online_cpus") or len(cpu_usage.get("percpu_usage") or [1])
        
        percent = 0.0
        if system_delta > 0 and cpu_delta > 0:
            percent = (cpu_delta / system_delta) * online_cpus * 100.0
        
        throttling = cpu_stats.get("throttling_data") or {}
        return CpuStats(
            percent=round(percent, 2),
            online_cpus=online_cpus,
            throttled_periods=throttling.get("throttled_periods"),
        )
    
    def _calculate_memory_stats(self, stats: Dict[str, Any]) -> MemoryStats:
        """Calculate memory usage statistics"""
        memory_stats = stats.get("memory_stats") or {}
        usage = memory_stats.get("usage", 0)
        limit = memory_stats.get("limit", 0)
        
        if limit > UNLIMITED_MEMORY:
            limit = 0
        
        percent = 0.0
        if limit > 0:
            percent = (usage / limit) * 100.0
        
        detail = memory_stats.get("stats") or {}
        return MemoryStats(
            usage=usage,
            limit=limit,
            percent=round(percent, 2),
            cache=detail.get("cache"),
        )
    
    def _calculate_network_stats(self, stats: Dict[str, Any]) -> NetworkStats:
        """Sum network I/O over all interfaces"""
        networks = stats.get("networks") or {}
        return NetworkStats(
            rx_bytes=sum(iface.get("rx_bytes", 0) for iface in networks.values()),
            tx_bytes=sum(iface.get("tx_bytes", 0) for iface in networks.values()),
        )
    
    def _calculate_block_io_stats(self, stats: Dict[str, Any]) -> BlockIoStats:
        """Sum block I/O bytes by operation"""
        blkio_stats = stats.get("blkio_stats") or {}
        read_bytes = 0
        write_bytes = 0
        
        for entry in blkio_stats.get("io_service_bytes_recursive") or []:
            op = (entry.get("op") or "").lower()
            if op == "read":
                read_bytes += entry.get("value", 0)
            elif op == "write":
                write_bytes += entry.get("value", 0)
        
        return BlockIoStats(read_bytes=read_bytes, write_bytes=write_bytes)
