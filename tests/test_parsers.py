"""Tests for the GC log dialect parsers."""

import asyncio
from datetime import datetime, timezone

import pytest

from gcflow.models import (
    ApplicationConcurrentTime,
    ApplicationStoppedTime,
    Channel,
    ConcurrentPhase,
    GCPause,
    JVMTermination,
    SurvivorRecord,
    UnitState,
)
from gcflow.parsers import (
    CMSTenuredPoolParser,
    G1GCParser,
    GenerationalHeapParser,
    JVMEventParser,
    LogFileParser,
    ShenandoahParser,
    SurvivorMemoryPoolParser,
    ZGCParser,
    all_parsers,
    parse_decoration,
)


def parse_all(parser, lines):
    events = []
    for line in lines:
        events.extend(parser.parse(line))
    events.extend(parser.flush())
    return events


class TestDecorations:
    """Tests for time decoration parsing."""

    def test_legacy_date_and_uptime(self):
        """Test the -XX:+PrintGCDateStamps -XX:+PrintGCTimeStamps prefix."""
        decoration = parse_decoration("2023-01-01T10:00:00.250+0000: 1.234: [GC ...]")

        assert decoration.timestamp.uptime == 1.234
        assert decoration.timestamp.date_time == datetime(
            2023, 1, 1, 10, 0, 0, 250000, tzinfo=timezone.utc
        )
        assert decoration.body == "[GC ...]"

    def test_legacy_uptime_with_comma(self):
        """Test locales that print a decimal comma."""
        decoration = parse_decoration("1,500: [GC ...]")

        assert decoration.timestamp.uptime == 1.5
        assert decoration.timestamp.date_time is None

    def test_unified_tags(self):
        """Test unified logging decorations."""
        decoration = parse_decoration(
            "[2023-01-01T10:00:00.000+0000][2.500s][info][gc] GC(0) Pause Young"
        )

        assert decoration.timestamp.uptime == 2.5
        assert decoration.timestamp.date_time.year == 2023
        assert decoration.body == "GC(0) Pause Young"

    def test_unified_uptime_millis(self):
        """Test the uptimemillis decoration."""
        assert parse_decoration("[1500ms][info][gc] GC(0)").timestamp.uptime == 1.5

    def test_undecorated(self):
        """Test that continuation lines have no decoration."""
        assert parse_decoration("   [Eden: 24.0M(24.0M)->0.0B(13.0M)]") is None
        assert parse_decoration("[info][gc] no time here") is None

    def test_impossible_date(self):
        """Test that a date which does not exist yields no decoration."""
        assert parse_decoration("2023-02-30T10:00:00.000+0000: 1.000: [GC ...]") is None
        assert parse_decoration("[2023-13-01T10:00:00.000+0000][1.000s][info][gc] GC(0)") is None


class TestJVMEventParser:
    """Tests for safepoint and application time lines."""

    def test_stopped_time(self):
        """Test the PrintGCApplicationStoppedTime line."""
        (event,) = JVMEventParser().parse(
            "2023-01-01T10:00:01.000+0000: 1.000: Total time for which application threads "
            "were stopped: 0.0123000 seconds, Stopping threads took: 0.0000500 seconds"
        )

        assert isinstance(event, ApplicationStoppedTime)
        assert event.duration == pytest.approx(0.0123)
        assert event.time_to_stop == pytest.approx(0.00005)
        assert event.timestamp.uptime == 1.0

    def test_unified_stopped_time(self):
        """Test the JDK 9-16 safepoint line."""
        (event,) = JVMEventParser().parse(
            "[2.345s][info][safepoint] Total time for which application threads were "
            "stopped: 0.0010000 seconds, Stopping threads took: 0.0000100 seconds"
        )

        assert event.timestamp.uptime == 2.345
        assert event.duration == pytest.approx(0.001)

    def test_jdk17_safepoint(self):
        """Test the JDK 17 nanosecond safepoint summary."""
        (event,) = JVMEventParser().parse(
            '[10.500s][info][safepoint] Safepoint "G1CollectForAllocation", Time since last: '
            "123456 ns, Reaching safepoint: 5000 ns, At safepoint: 2000000 ns, Total: 2005000 ns"
        )

        assert isinstance(event, ApplicationStoppedTime)
        assert event.duration == pytest.approx(0.002005)
        assert event.time_to_stop == pytest.approx(0.000005)

    def test_application_time(self):
        """Test the PrintGCApplicationConcurrentTime line."""
        (event,) = JVMEventParser().parse("1.500: Application time: 0.4000000 seconds")

        assert isinstance(event, ApplicationConcurrentTime)
        assert event.duration == pytest.approx(0.4)

    def test_ignores_other_lines(self):
        """Test that collections and undecorated lines produce nothing."""
        parser = JVMEventParser()

        assert parser.parse("1.000: [GC (Allocation Failure) ...]") == []
        assert parser.parse("Total time for which application threads were stopped: 0.1 seconds") == []


class TestGenerationalHeapParser:
    """Tests for Parallel, ParNew and Serial collections."""

    def test_parallel_young(self):
        """Test a PSYoungGen collection with derived old generation."""
        (event,) = GenerationalHeapParser().parse(
            "2023-01-01T10:00:01.000+0000: 1.000: [GC (Allocation Failure) "
            "[PSYoungGen: 65536K->10720K(76288K)] 65536K->10728K(251392K), 0.0123456 secs] "
            "[Times: user=0.03 sys=0.01, real=0.01 secs]"
        )

        assert isinstance(event, GCPause)
        assert event.collector == "Parallel"
        assert event.pause_type == "Young"
        assert event.cause == "Allocation Failure"
        assert event.duration == pytest.approx(0.0123456)
        assert (event.young_before_kb, event.young_after_kb, event.young_total_kb) == (
            65536,
            10720,
            76288,
        )
        assert (event.heap_before_kb, event.heap_after_kb, event.heap_total_kb) == (
            65536,
            10728,
            251392,
        )
        assert (event.old_before_kb, event.old_after_kb, event.old_total_kb) == (0, 8, 175104)

    def test_parallel_full(self):
        """Test a full collection with an explicit old pool."""
        (event,) = GenerationalHeapParser().parse(
            "5.000: [Full GC (System.gc()) [PSYoungGen: 10720K->0K(76288K)] "
            "[ParOldGen: 120000K->90000K(175104K)] 130720K->90000K(251392K), "
            "[Metaspace: 3000K->3000K(1056768K)], 0.0456789 secs]"
        )

        assert event.pause_type == "Full"
        assert event.cause == "System.gc()"
        assert (event.old_before_kb, event.old_after_kb) == (120000, 90000)
        assert event.duration == pytest.approx(0.0456789)

    def test_parnew(self):
        """Test a ParNew collection from a CMS log."""
        (event,) = GenerationalHeapParser().parse(
            "2.000: [GC (Allocation Failure) 2.000: [ParNew: 9000K->1000K(9216K), "
            "0.0050000 secs] 20000K->12500K(29696K), 0.0051000 secs] "
            "[Times: user=0.01 sys=0.00, real=0.01 secs]"
        )

        assert event.collector == "ParNew"
        assert event.duration == pytest.approx(0.0051)
        assert event.heap_after_kb == 12500

    def test_ignores_g1_lines(self):
        """Test that other collectors are left alone."""
        assert GenerationalHeapParser().parse(
            "1.000: [GC pause (G1 Evacuation Pause) (young), 0.0123456 secs]"
        ) == []


class TestCMSTenuredPoolParser:
    """Tests for the CMS old generation cycle."""

    LINES = [
        "3.000: [GC (CMS Initial Mark) [1 CMS-initial-mark: 10000K(20000K)] "
        "12000K(29696K), 0.0012345 secs] [Times: user=0.00 sys=0.00, real=0.00 secs]",
        "3.001: [CMS-concurrent-mark-start]",
        "3.500: [CMS-concurrent-mark: 0.100/0.150 secs] [Times: user=0.20 sys=0.00, real=0.15 secs]",
        "4.000: [GC (CMS Final Remark) [YG occupancy: 1000 K (9216 K)]4.000: "
        "[Rescan (parallel) , 0.0010000 secs]4.001: [weak refs processing, 0.0000100 secs]"
        "[1 CMS-remark: 10500K(20000K)] 11500K(29216K), 0.0023456 secs] "
        "[Times: user=0.00 sys=0.00, real=0.00 secs]",
    ]

    def test_cycle(self):
        """Test initial mark, a concurrent phase and remark."""
        initial_mark, mark, remark = parse_all(CMSTenuredPoolParser(), self.LINES)

        assert initial_mark.pause_type == "Initial Mark"
        assert initial_mark.duration == pytest.approx(0.0012345)
        assert initial_mark.old_before_kb == 10000

        assert isinstance(mark, ConcurrentPhase)
        assert mark.phase == "mark"
        assert mark.duration == pytest.approx(0.15)
        assert mark.cpu_time == pytest.approx(0.1)

        assert remark.pause_type == "Remark"
        assert remark.duration == pytest.approx(0.0023456)
        assert remark.heap_total_kb == 29216


class TestG1GCParser:
    """Tests for G1 in both logging formats."""

    def test_unified_young(self):
        """Test a JDK 10+ young pause with subtype and cause."""
        (event,) = G1GCParser().parse(
            "[2023-01-01T10:00:01.000+0000][1.000s][info][gc] GC(0) Pause Young (Normal) "
            "(G1 Evacuation Pause) 24M->4M(256M) 5.123ms"
        )

        assert event.collector == "G1"
        assert event.pause_type == "Young"
        assert event.cause == "G1 Evacuation Pause"
        assert event.duration == pytest.approx(0.005123)
        assert (event.heap_before_kb, event.heap_after_kb, event.heap_total_kb) == (
            24576,
            4096,
            262144,
        )

    def test_unified_mixed(self):
        """Test that a mixed young pause is reported as Mixed."""
        (event,) = G1GCParser().parse(
            "[2.000s][info][gc] GC(1) Pause Young (Mixed) (G1 Evacuation Pause) "
            "30M->10M(256M) 7.000ms"
        )

        assert event.pause_type == "Mixed"

    def test_unified_full_with_nested_parentheses(self):
        """Test a cause that itself contains parentheses."""
        (event,) = G1GCParser().parse(
            "[3.000s][info][gc] GC(2) Pause Full (System.gc()) 50M->20M(256M) 40.500ms"
        )

        assert event.pause_type == "Full"
        assert event.cause == "System.gc()"
        assert event.duration == pytest.approx(0.0405)

    def test_jdk9_cause_only(self):
        """Test the older form with the cause in the only parenthesis."""
        (event,) = G1GCParser().parse(
            "[4.000s][info][gc] GC(3) Pause Young (G1 Evacuation Pause) 24M->4M(256M) 5,500ms"
        )

        assert event.pause_type == "Young"
        assert event.cause == "G1 Evacuation Pause"
        assert event.duration == pytest.approx(0.0055)

    def test_unified_remark_and_concurrent_cycle(self):
        """Test remark pauses and concurrent cycles."""
        remark, cycle = parse_all(
            G1GCParser(),
            [
                "[5.000s][info][gc] GC(4) Pause Remark 40M->40M(256M) 1.200ms",
                "[6.000s][info][gc] GC(4) Concurrent Cycle 45.678ms",
                "[6.000s][info][gc,phases] GC(5)   Pre Evacuate Collection Set: 0.1ms",
            ],
        )

        assert remark.pause_type == "Remark"
        assert isinstance(cycle, ConcurrentPhase)
        assert cycle.phase == "Concurrent Cycle"
        assert cycle.duration == pytest.approx(0.045678)

    def test_legacy_pause_with_heap_line(self):
        """Test that the legacy pause is completed by its Heap: detail line."""
        parser = G1GCParser()

        assert parser.parse(
            "2023-01-01T10:00:01.000+0000: 1.000: [GC pause (G1 Evacuation Pause) (young), "
            "0.0123456 secs]"
        ) == []
        assert parser.parse("   [Parallel Time: 11.5 ms, GC Workers: 4]") == []
        (event,) = parser.parse(
            "   [Eden: 24.0M(24.0M)->0.0B(13.0M) Survivors: 0.0B->3072.0K "
            "Heap: 24.0M(256.0M)->6937.0K(256.0M)]"
        )

        assert event.pause_type == "Young"
        assert event.cause == "G1 Evacuation Pause"
        assert event.duration == pytest.approx(0.0123456)
        assert (event.heap_before_kb, event.heap_after_kb, event.heap_total_kb) == (
            24576,
            6937,
            262144,
        )
        assert parser.flush() == []

    def test_legacy_pending_pause_is_flushed(self):
        """Test that a pause without detail is emitted by the next pause and at the end."""
        first, second = parse_all(
            G1GCParser(),
            [
                "1.000: [GC pause (G1 Evacuation Pause) (young), 0.0100000 secs]",
                "2.000: [GC pause (G1 Humongous Allocation) (young) (initial-mark), 0.0200000 secs]",
            ],
        )

        assert first.duration == pytest.approx(0.01)
        assert first.heap_before_kb is None
        assert second.pause_type == "Young (initial-mark)"
        assert second.cause == "G1 Humongous Allocation"

    def test_legacy_full(self):
        """Test a legacy full collection."""
        (event,) = G1GCParser().parse(
            "9.000: [Full GC (Allocation Failure)  250M->120M(256M), 0.5000000 secs]"
        )

        assert event.pause_type == "Full"
        assert event.heap_after_kb == 122880


class TestZGCParser:
    """Tests for ZGC phases."""

    def test_pauses_and_concurrent_phases(self):
        """Test the three pauses and named concurrent phases."""
        events = parse_all(
            ZGCParser(),
            [
                "[1.000s][info][gc,phases] GC(0) Pause Mark Start 0.015ms",
                "[1.010s][info][gc,phases] GC(0) Concurrent Mark 12.345ms",
                "[1.011s][info][gc,phases] GC(0) Concurrent Mark Free 0.001ms",
                "[1.020s][info][gc,phases] GC(0) Pause Mark End 0.020ms",
                "[1.030s][info][gc,phases] GC(0) Pause Relocate Start 0.010ms",
                "[1.040s][info][gc] GC(0) Garbage Collection (Warmup) 100M(10%)->50M(5%)",
            ],
        )

        pauses = [e for e in events if isinstance(e, GCPause)]
        phases = [e for e in events if isinstance(e, ConcurrentPhase)]
        assert [p.pause_type for p in pauses] == [
            "Pause Mark Start",
            "Pause Mark End",
            "Pause Relocate Start",
        ]
        assert pauses[0].duration == pytest.approx(0.000015)
        assert [p.phase for p in phases] == ["Concurrent Mark", "Concurrent Mark Free"]


class TestShenandoahParser:
    """Tests for Shenandoah phases."""

    def test_cycle(self):
        """Test init/final pauses, concurrent phases and degenerated GC."""
        events = parse_all(
            ShenandoahParser(),
            [
                "[0.005s][info][gc] Using Shenandoah",
                "[1.000s][info][gc] GC(0) Pause Init Mark 0.123ms",
                "[1.050s][info][gc] GC(0) Concurrent marking 74M->76M(128M) 12.345ms",
                "[1.100s][info][gc] GC(0) Pause Final Mark 0.456ms",
                "[2.000s][info][gc] GC(1) Pause Degenerated GC (Mark) 60M->40M(128M) 15.000ms",
                "[3.000s][info][gc] GC(2) Pause Full 100M->50M(128M) 80.000ms",
            ],
        )

        init, marking, final, degenerated, full = events
        assert init.pause_type == "Pause Init Mark"
        assert init.duration == pytest.approx(0.000123)
        assert isinstance(marking, ConcurrentPhase)
        assert marking.phase == "Concurrent marking"
        assert final.pause_type == "Pause Final Mark"
        assert degenerated.pause_type == "Pause Degenerated GC"
        assert degenerated.cause == "Mark"
        assert degenerated.heap_after_kb == 40960
        assert full.pause_type == "Full"

    def test_full_pause_needs_shenandoah_header(self):
        """Test that a G1 full pause is not mistaken for a Shenandoah one."""
        assert ShenandoahParser().parse(
            "[3.000s][info][gc] GC(2) Pause Full (System.gc()) 50M->20M(256M) 40.500ms"
        ) == []


class TestSurvivorMemoryPoolParser:
    """Tests for tenuring distributions."""

    def test_legacy_distribution(self):
        """Test undecorated age lines following a decorated collection."""
        (record,) = parse_all(
            SurvivorMemoryPoolParser(),
            [
                "2023-01-01T10:00:01.000+0000: 1.000: [GC (Allocation Failure) 1.000: [ParNew",
                "Desired survivor size 1081344 bytes, new threshold 7 (max 15)",
                "- age   1:     524288 bytes,     524288 total",
                "- age   2:     131072 bytes,     655360 total",
                ": 9000K->1000K(9216K), 0.0050000 secs] 20000K->12500K(29696K), 0.0051000 secs]",
            ],
        )

        assert isinstance(record, SurvivorRecord)
        assert record.timestamp.uptime == 1.0
        assert record.desired_survivor_size == 1081344
        assert record.calculated_threshold == 7
        assert record.max_threshold == 15
        assert record.bytes_at_age == (524288, 131072)

    def test_unified_distribution_flushed_at_end(self):
        """Test the gc+age format and flushing when the stream ends."""
        parser = SurvivorMemoryPoolParser()
        lines = [
            "[1.000s][debug][gc,age] GC(0) Desired survivor size 1048576 bytes, "
            "new threshold 15 (max threshold 15)",
            "[1.000s][trace][gc,age] GC(0) Age table with threshold 15 (max threshold 15)",
            "[1.000s][trace][gc,age] GC(0) - age   1:      10000 bytes,      10000 total",
            "[1.000s][trace][gc,age] GC(0) - age   3:       2000 bytes,      12000 total",
        ]
        for line in lines:
            assert parser.parse(line) == []

        (record,) = parser.flush()
        assert record.bytes_at_age == (10000, 0, 2000)
        assert record.max_threshold == 15


class TestParserLifecycle:
    """Tests for parsers deployed on a bus."""

    @pytest.mark.asyncio
    async def test_parses_inbox_and_terminates_outbox(self, event_bus, collector):
        """Test events in line order followed by exactly one termination."""
        parser = JVMEventParser()
        await parser.deploy(event_bus, worker=True)
        outbox = collector()
        event_bus.subscribe(Channel.JVM_EVENT_PARSER_OUTBOX, outbox)

        for i in range(1, 6):
            event_bus.publish(Channel.PARSER_INBOX, f"{i}.000: Application time: 0.5000000 seconds")
        event_bus.publish(Channel.PARSER_INBOX, JVMTermination())
        await asyncio.wait_for(outbox.done.wait(), 5)
        await parser.await_completion(timeout=1)

        events = outbox.messages[:-1]
        assert [e.timestamp.uptime for e in events] == [1.0, 2.0, 3.0, 4.0, 5.0]
        assert len(outbox.terminations) == 1
        assert isinstance(outbox.messages[-1], JVMTermination)
        assert parser.state is UnitState.COMPLETED
        assert parser.lines_seen == 5
        assert parser.events_emitted == 5
        await parser.undeploy()

    @pytest.mark.asyncio
    async def test_flushes_pending_before_termination(self, event_bus, collector):
        """Test that stateful parsers emit pending events before terminating."""
        parser = G1GCParser()
        await parser.deploy(event_bus)
        outbox = collector()
        event_bus.subscribe(Channel.G1GC_PARSER_OUTBOX, outbox)

        event_bus.publish(
            Channel.PARSER_INBOX, "1.000: [GC pause (G1 Evacuation Pause) (young), 0.0100000 secs]"
        )
        event_bus.publish(Channel.PARSER_INBOX, JVMTermination())
        await asyncio.wait_for(outbox.done.wait(), 5)

        pause, termination = outbox.messages
        assert isinstance(pause, GCPause)
        assert isinstance(termination, JVMTermination)

    @pytest.mark.asyncio
    async def test_parse_error_is_contained(self, event_bus, collector):
        """Test that a failing line is counted and later lines still parse."""

        class Picky(JVMEventParser):
            def parse(self, line):
                if "bad" in line:
                    raise ValueError("cannot parse")
                return super().parse(line)

        parser = Picky()
        await parser.deploy(event_bus)
        outbox = collector()
        event_bus.subscribe(Channel.JVM_EVENT_PARSER_OUTBOX, outbox)

        event_bus.publish(Channel.PARSER_INBOX, "bad line")
        event_bus.publish(Channel.PARSER_INBOX, "1.000: Application time: 0.5000000 seconds")
        event_bus.publish(Channel.PARSER_INBOX, JVMTermination())
        await asyncio.wait_for(outbox.done.wait(), 5)

        assert parser.parse_errors == 1
        assert isinstance(outbox.messages[0], ApplicationConcurrentTime)

    def test_outbox_is_required(self):
        """Test that a parser subclass must name its outbox."""

        class Nameless(LogFileParser):
            def parse(self, line):
                return []

        with pytest.raises(TypeError):
            Nameless()

    def test_parse_must_be_implemented(self):
        """Test that a parser without parse cannot be built."""

        class Silent(LogFileParser):
            OUTBOX = "silent"

        with pytest.raises(TypeError, match="parse"):
            Silent()

    def test_all_parsers_have_distinct_outboxes(self):
        """Test the default parser set."""
        parsers = all_parsers()

        assert len({p.outbox for p in parsers}) == len(parsers) == 7
        assert all(p.inbox == "PARSER" for p in parsers)
