"""Tests for CLI interface."""

import json
import subprocess

import pytest
from click.testing import CliRunner

from protobind.generator import parser
from protobind.generator.cli import cli


@pytest.fixture
def descriptor_file(descriptor_set, tmp_path):
    """Serialize a textproto fixture to a descriptor set file."""

    def write(fixture):
        path = tmp_path / f"{fixture}.pb"
        path.write_bytes(descriptor_set(fixture).SerializeToString())
        return str(path)

    return write


def describe_gen_command():
    def generates_cpp_and_kotlin(expect, descriptor_file, tmp_path):
        out = tmp_path / "out"
        result = CliRunner().invoke(
            cli,
            ["gen", "-p", "p.proto", "--descriptor-set", descriptor_file("status"), "-o", str(out)],
        )
        expect(result.exit_code) == 0
        expect("Generated C++ files" in result.output) == True
        expect("Generated Kotlin files" in result.output) == True

        header = (out / "p_protobuf_helpers.hpp").read_text()
        source = (out / "p_protobuf_helpers.cpp").read_text()
        mapper = (out / "p" / "NativeModelMapper.kt").read_text()
        expect("#ifndef PROTOBUF_HELPERS_HPP_P" in header) == True
        expect("::native::p::Status toNative(const ::p::Status& proto);" in header) == True
        expect("::native::p::Rec toNative(const ::p::Rec& proto);" in header) == True
        expect('#include "p_protobuf_helpers.hpp"' in source) == True
        expect("std::invalid_argument" in source) == True
        expect("fun p.P.Status.toNative(): p.Status = when (this) {" in mapper) == True
        expect("fun p.P.Rec.toNative(): p.Rec = p.Rec(" in mapper) == True
        expect("p.P.Status.UNRECOGNIZED -> throw IllegalArgumentException(" in mapper) == True

    def generates_only_requested_targets(expect, descriptor_file, tmp_path):
        out = tmp_path / "out"
        result = CliRunner().invoke(
            cli,
            [
                "gen",
                "-p",
                "kinds.proto",
                "--descriptor-set",
                descriptor_file("kinds"),
                "-o",
                str(out),
                "--no-kotlin",
                "--cpp-namespace",
                "app",
                "--cpp-include",
                "app/model.h",
            ],
        )
        expect(result.exit_code) == 0
        expect(sorted(p.name for p in out.iterdir())) == [
            "kinds_protobuf_helpers.cpp",
            "kinds_protobuf_helpers.hpp",
        ]
        header = (out / "kinds_protobuf_helpers.hpp").read_text()
        expect('#include "app/model.h"' in header) == True
        expect("::app::demo::Point toNative(const ::demo::Point& proto);" in header) == True

    def reports_nothing_to_do(expect, descriptor_file, tmp_path):
        result = CliRunner().invoke(
            cli,
            [
                "gen",
                "-p",
                "p.proto",
                "--descriptor-set",
                descriptor_file("status"),
                "-o",
                str(tmp_path / "out"),
                "--no-cpp",
                "--no-kotlin",
            ],
        )
        expect(result.exit_code) == 0
        expect("Nothing to generate" in result.output) == True

    def fails_on_unresolved_type_without_writing(expect, descriptor_file, tmp_path):
        out = tmp_path / "out"
        result = CliRunner().invoke(
            cli,
            [
                "gen",
                "-p",
                "broken.proto",
                "--descriptor-set",
                descriptor_file("unresolved"),
                "-o",
                str(out),
            ],
        )
        expect(result.exit_code) == 1
        expect("Error:" in result.output) == True
        expect("b.Missing" in result.output) == True
        expect(out.exists()) == False

    def fails_when_protoc_is_missing(expect, tmp_path):
        proto = tmp_path / "p.proto"
        proto.write_text('syntax = "proto3";\n')
        result = CliRunner().invoke(
            cli,
            ["gen", "-p", str(proto), "-o", str(tmp_path / "out")],
            env={"PROTOBIND_PROTOC": str(tmp_path / "no-such-protoc")},
        )
        expect(result.exit_code) == 1
        lines = [line for line in result.output.splitlines() if line.startswith("Error:")]
        expect(len(lines)) == 1
        expect("no-such-protoc' not found" in lines[0]) == True

    def fails_on_target_missing_from_set(expect, descriptor_file, tmp_path):
        result = CliRunner().invoke(
            cli,
            [
                "gen",
                "-p",
                "other.proto",
                "--descriptor-set",
                descriptor_file("status"),
                "-o",
                str(tmp_path / "out"),
            ],
        )
        expect(result.exit_code) == 1
        expect("other.proto" in result.output) == True

    def fails_on_corrupt_descriptor_set(expect, tmp_path):
        corrupt = tmp_path / "corrupt.pb"
        corrupt.write_bytes(b"\xff\xff\xff\xff")
        result = CliRunner().invoke(
            cli,
            ["gen", "-p", "p.proto", "--descriptor-set", str(corrupt), "-o", str(tmp_path / "out")],
        )
        expect(result.exit_code) == 1
        expect(isinstance(result.exception, SystemExit)) == True
        expect("Error: Invalid descriptor set" in result.output) == True

    def keeps_long_diagnostics_on_one_line(expect, monkeypatch, tmp_path):
        proto = tmp_path / "p.proto"
        proto.write_text("syntax = \"proto3\";\n")
        diagnostics = "p.proto:1:1: " + "very long diagnostic " * 10 + "[end]"

        def run(command, **kwargs):
            return subprocess.CompletedProcess(command, 1, stdout="", stderr=diagnostics)

        monkeypatch.setattr(parser.subprocess, "run", run)
        result = CliRunner().invoke(cli, ["gen", "-p", str(proto), "-o", str(tmp_path / "out")])
        expect(result.exit_code) == 1
        expect(diagnostics in result.output) == True


def describe_info_command():
    def prints_classified_tree(expect, descriptor_file):
        result = CliRunner().invoke(
            cli, ["info", "-p", "kinds.proto", "--descriptor-set", descriptor_file("kinds")]
        )
        expect(result.exit_code) == 0
        expect("AllKinds" in result.output) == True
        expect("SCALAR_OPTIONAL" in result.output) == True
        expect("MESSAGE_REPEATED" in result.output) == True
        expect("kColorDeepBlue" in result.output) == True

    def prints_model_as_json(expect, descriptor_file):
        result = CliRunner().invoke(
            cli,
            ["info", "-p", "p.proto", "--descriptor-set", descriptor_file("status"), "--json"],
        )
        expect(result.exit_code) == 0
        data = json.loads(result.output)
        expect(data["name"]) == "p.proto"
        expect(data["messages"][0]["fields"][0]["declared_type"]) == "p.Status"
