import pytest


@pytest.fixture
def g1_unified_log():
    """JDK 17 unified-logging G1 log with young, mixed and full pauses."""
    return """[2026-02-05T05:43:29.965+0200][0.004s][info][gc     ] Using G1
[2026-02-05T05:43:29.965+0200][0.005s][info][gc,init] Heap Region Size: 1M
[2026-02-05T05:43:52.074+0200][60.0s][info][gc,heap     ] GC(0) Old regions: 0->50
[2026-02-05T05:43:52.074+0200][60.0s][info][gc          ] GC(0) Pause Young (Normal) (G1 Evacuation Pause) 22M->19M(256M) 8.657ms
[2026-02-05T05:44:52.074+0200][120.0s][info][gc          ] GC(1) Pause Young (Mixed) (G1 Evacuation Pause) 80M->40M(256M) 9.5ms
[2026-02-05T05:45:52.074+0200][180.0s][info][gc          ] GC(2) Pause Full (System.gc()) 120M->20M(256M) 30.100ms
"""


@pytest.fixture
def g1_pause_log():
    """G1 log using the 'GC pause (G1 ... Generation)' markers."""
    return """[2025-10-24T10:39:40.815+0800][info][gc] Using G1
[2025-10-24T10:39:41.000+0800][info][gc] GC pause (G1 Young Generation) (System.gc()) 4096M->2048M(8192M) 15.339ms
[2025-10-24T10:39:42.000+0800][info][gc] GC pause (G1 Mixed Generation) 2048M->1024M(8192M) 20.123ms
"""


@pytest.fixture
def zgc_log():
    """Generational ZGC log with major and minor collections."""
    return """[2025-10-24T10:39:40.817+0800][info   ][gc,init ] Initializing The Z Garbage Collector
[2025-10-24T10:40:27.095+0800][info   ][gc          ] GC(7) Major Collection (Warmup)
[2025-10-24T10:40:27.096+0800][info   ][gc          ] GC(8) Major Collection (Metadata GC Threshold) 110M(1%)->62M(0%) 0.035s
[2025-10-24T10:40:27.097+0800][info   ][gc          ] Another log line without memory data
[2025-10-24T10:40:27.098+0800][info   ][gc          ] GC(9) Minor Collection (Allocation Rate) 3072M(30%)->1024M(10%) 0.020s
"""
