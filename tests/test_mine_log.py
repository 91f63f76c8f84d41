import json
import os

import pytest

import mine_log

XES_LOG = """<?xml version="1.0" encoding="UTF-8"?>
<log xes.version="1.0" xmlns="http://www.xes-standard.org/">
    <trace>
        <string key="concept:name" value="c1"/>
        <event>
            <string key="concept:name" value="register"/>
            <date key="time:timestamp" value="2020-01-01T10:00:00.000+00:00"/>
        </event>
        <event>
            <string key="concept:name" value="check"/>
            <date key="time:timestamp" value="2020-01-01T10:05:00.000+00:00"/>
        </event>
        <event>
            <string key="concept:name" value="pay"/>
            <date key="time:timestamp" value="2020-01-01T10:10:00.000+00:00"/>
        </event>
    </trace>
    <trace>
        <string key="concept:name" value="c2"/>
        <event>
            <string key="concept:name" value="register"/>
            <date key="time:timestamp" value="2020-01-02T10:00:00.000+00:00"/>
        </event>
        <event>
            <string key="concept:name" value="pay"/>
            <date key="time:timestamp" value="2020-01-02T10:05:00.000+00:00"/>
        </event>
        <event>
            <string key="concept:name" value="check"/>
            <date key="time:timestamp" value="2020-01-02T10:10:00.000+00:00"/>
        </event>
    </trace>
</log>
"""


@pytest.fixture
def log_path(tmp_path):
    path = tmp_path / "orders.xes"
    path.write_text(XES_LOG, encoding="utf-8")
    return str(path)


class TestMineLog:
    def test_main_writes_ptml_and_json(self, tmp_path, log_path):
        output_dir = str(tmp_path / "out")

        mine_log.main([log_path, "-o", output_dir, "--log-level", "WARNING"])

        assert os.path.exists(os.path.join(output_dir, "orders.ptml"))
        with open(os.path.join(output_dir, "orders.json"), encoding="utf-8") as f:
            output = json.load(f)
        assert output["hierarchy"]["value"] == "sequence"
        assert [child["value"] for child in output["hierarchy"]["children"]] == [
            {"activity": "register", "ots": []}, "parallel"]

    def test_import_xes(self, tmp_path, log_path):
        forests = mine_log.import_xes([log_path], str(tmp_path), fork_join=True)
        assert list(forests) == ["orders"]
        assert str(forests["orders"][0]) == "->( 'register', +( 'check', 'pay' ) )"
