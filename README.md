# diagwatch

`diagwatch` reads Qualcomm diagnostic ("diag") log data, the kind stored in
QMDL files, and turns it into something you can inspect:

- **HDLC framing**: encode and decode diag frames with their CRC-CCITT
  checksum (`diagwatch.hdlc`).
- **Diag messages**: parse log and response messages out of message
  containers, including LTE RRC over-the-air packets, LTE/UMTS NAS messages,
  GSM/GPRS/WCDMA signalling and IP traffic logs (`diagwatch.diag`).
- **QMDL files**: read and write the flat stream of HDLC-framed messages
  (`diagwatch.qmdl`).
- **Log mask requests**: build and serialize the requests that switch on
  logging for particular log codes (`diagwatch.requests`,
  `diagwatch.log_codes`).
- **GSMTAP and pcapng**: convert parsed messages to GSMTAP packets and write
  them to a pcapng capture that Wireshark can open (`diagwatch.gsmtap`,
  `diagwatch.gsmtap_parser`, `diagwatch.pcap`).
- **Analysis building blocks**: turn GSMTAP messages into information
  elements and write analyzers that emit events about them
  (`diagwatch.information_element`, `diagwatch.analyzer`).

It needs Python 3.10 or later and has no third-party dependencies.

## HDLC framing

```python
from diagwatch.hdlc import hdlc_encapsulate, hdlc_decapsulate, HdlcError

frame = hdlc_encapsulate(bytes([1, 2, 3, 4]))
assert frame == bytes([1, 2, 3, 4, 145, 57, 126])
assert hdlc_decapsulate(frame) == bytes([1, 2, 3, 4])

try:
    hdlc_decapsulate(b"\x01\x02\x03\x04")
except HdlcError as err:
    print("bad frame:", err)
```

`crc_ccitt(data)` gives the 16-bit checksum on its own.

## Reading a QMDL file and parsing messages

A QMDL file is a series of HDLC-framed diag messages. `QmdlReader` yields
one `MessagesContainer` per frame (pass `max_bytes` to stop after that many
bytes), and `into_messages()` gives a list in which each entry is either a
parsed message (`LogMessage` or `ResponseMessage`) or a `DiagParsingError`
describing why that frame could not be decoded.

```python
from diagwatch.qmdl import QmdlReader
from diagwatch.diag import DiagParsingError, LogMessage

with open("capture.qmdl", "rb") as fh:
    for container in QmdlReader(fh):
        for item in container.into_messages():
            if isinstance(item, DiagParsingError):
                print("skipped:", item)
            elif isinstance(item, LogMessage):
                print(item.timestamp.to_datetime(), item.body)
```

`QmdlWriter` writes the frames of containers back out and keeps a running
`total_written` count. Raw device buffers can be parsed with
`MessagesContainer.from_bytes`, and a single decapsulated frame with
`parse_message`.

## Converting to pcapng

`gsmtap_parser.parse` turns a diag message into a timestamp and a
`GsmtapMessage`, or `None` when the message has no GSMTAP form. LTE RRC
over-the-air logs and LTE NAS logs are converted; other log types are
ignored. `GsmtapPcapWriter` writes the pcapng section header when it is
created, and then wraps each message in IPv4/UDP headers addressed to the
GSMTAP port (4729).

```python
from diagwatch.qmdl import QmdlReader
from diagwatch.diag import DiagParsingError
from diagwatch.gsmtap_parser import parse, GsmtapParserError
from diagwatch.pcap import GsmtapPcapWriter

with open("capture.qmdl", "rb") as src, open("capture.pcapng", "wb") as dst:
    writer = GsmtapPcapWriter(dst)
    writer.write_iface_header()
    for container in QmdlReader(src):
        for item in container.into_messages():
            if isinstance(item, DiagParsingError):
                continue
            try:
                result = parse(item)
            except GsmtapParserError:
                continue
            if result is not None:
                timestamp, gsmtap_msg = result
                writer.write_gsmtap_message(gsmtap_msg, timestamp)
```

## Writing an analyzer

`information_element_from_gsmtap` turns a plain LTE NAS GSMTAP message into a
`NasInformationElement`; any other GSMTAP type raises
`UnsupportedGsmtapTypeError`. Subclass `Analyzer`, implement `name`,
`description` and `analyze_information_element`, and return an `Event` or
`None`. An `EventType` with no severity is informational; one with a
`Severity` is a warning.

```python
from diagwatch.analyzer import Analyzer, Event, EventType, Severity
from diagwatch.diag import DiagParsingError
from diagwatch.gsmtap_parser import parse, GsmtapParserError
from diagwatch.information_element import (
    InformationElementError,
    NasInformationElement,
    information_element_from_gsmtap,
)
from diagwatch.qmdl import QmdlReader


class IdentityRequestAnalyzer(Analyzer):
    def name(self):
        return "NAS identity request"

    def description(self):
        return "Flags NAS identity requests for the IMSI."

    def analyze_information_element(self, ie):
        if isinstance(ie, NasInformationElement) and ie.payload == b"\x07\x55\x01":
            return Event(EventType(Severity.HIGH), "NAS IMSI identity request detected")
        return None


analyzer = IdentityRequestAnalyzer()
with open("capture.qmdl", "rb") as fh:
    for container in QmdlReader(fh):
        for item in container.into_messages():
            if isinstance(item, DiagParsingError):
                continue
            try:
                result = parse(item)
                if result is None:
                    continue
                timestamp, gsmtap_msg = result
                ie = information_element_from_gsmtap(gsmtap_msg)
            except (GsmtapParserError, InformationElementError):
                continue
            event = analyzer.analyze_information_element(ie)
            if event is not None:
                print(timestamp.to_datetime(), event.to_dict())
```

`AnalysisRow` and `PacketAnalysis` are available for collecting results per
container; `AnalysisRow.contains_warnings()` reports whether any collected
event is a warning.

## Building log mask requests

```python
from diagwatch.hdlc import hdlc_encapsulate
from diagwatch.log_codes import LOG_CODES_FOR_RAW_PACKET_LOGGING
from diagwatch.requests import RequestContainer, build_log_mask_request

request = build_log_mask_request(11, 513, LOG_CODES_FOR_RAW_PACKET_LOGGING)
container = RequestContainer(hdlc_encapsulate(request.to_bytes()))
wire_bytes = container.to_bytes()
```

`RetrieveIdRangesRequest` asks for the log mask size of each log type.

## What it does not do

- It does not open or configure a diag device. It builds and parses the
  requests and responses, but sending them and reading the replies is left
  to the caller.
- It has no command-line program; it is used as a library.
- LTE RRC messages are not decoded into information elements: only plain
  LTE NAS messages are, as raw bytes.
- It ships no ready-made analyzers and nothing that runs a set of analyzers
  over a capture for you; the `Analyzer` interface and result types are
  provided for your own heuristics.