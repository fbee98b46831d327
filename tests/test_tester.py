import pytest

from pdstore import tester


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    case_runner = tester.TestCaseRunner()
    yield case_runner
    repo = case_runner.repository
    if repo is not None and repo.is_open():
        repo.close()


def feed(case_runner, *lines):
    return [case_runner.process_line(line + "\n") for line in lines]


SETUP = [
    "CREATE books authors 0",
    "OPEN books authors 0",
    "STORE 1 0",
    "STORE 2 0",
    "STORE_LINKED 10 0",
    "STORE_LINKED 11 0",
]


def test_full_scenario_passes(runner):
    results = feed(
        runner,
        *SETUP,
        "NDX_SEARCH 1 0",
        "NDX_SEARCH 3 1",
        "SEARCH_LINKED 11 2",
        "NON_NDX_SEARCH ISBN-of-2 2",
        "NON_NDX_SEARCH ISBN-of-9 -1",
        "LINK 1 10 0",
        "LINK 1 11 0",
        "SEARCH_LINKED_BY_PARENT 1 2 10 11",
        "NDX_DELETE 2 0",
        "NDX_SEARCH 2 1",
        "CLOSE 0",
    )
    assert [r.info for r in results if not r.passed] == []
    assert len(results) == 17


def test_duplicate_store_reports_failure(runner):
    results = feed(runner, *SETUP, "STORE 1 0", "STORE 1 1")
    assert results[-2].passed is False
    assert results[-2].info == "add_book returned status 1"
    assert results[-1].passed is True


def test_link_status_codes(runner):
    results = feed(runner, *SETUP, "LINK 1 10 0", "LINK 1 10 16", "LINK 5 10 -1", "LINK 1 99 -1")
    assert all(r.passed for r in results)


def test_link_mismatch_message(runner):
    (*_, result) = feed(runner, *SETUP, "LINK 1 10 0", "LINK 1 10 0")
    assert result.passed is False
    assert result.info == (
        "Parent key: 1, Child key: 10 could not be linked. Expected status : 0, Got status : 16"
    )


def test_search_linked_io_mismatch(runner):
    (*_, good, bad) = feed(runner, *SETUP, "SEARCH_LINKED 10 1", "SEARCH_LINKED 11 1")
    assert good.passed is True
    assert bad.passed is False
    assert bad.info == "Num I/O not matching for author 11... Expected:1 Got:2"


def test_search_linked_missing_author_fails(runner):
    (*_, result) = feed(runner, *SETUP, "SEARCH_LINKED 42 -1")
    assert result.passed is False
    assert result.info.startswith("search key: 42;")


def test_linked_by_parent_wrong_key(runner):
    (*_, result) = feed(runner, *SETUP, "LINK 1 10 0", "SEARCH_LINKED_BY_PARENT 1 1 11")
    assert result.passed is False
    assert result.info == "Expected key 11 not found in linked keys"


def test_linked_by_parent_wrong_size(runner):
    (*_, result) = feed(runner, *SETUP, "LINK 1 10 0", "SEARCH_LINKED_BY_PARENT 1 2 10 11")
    assert result.passed is False
    assert "Expected size 2, Got size 1" in result.info


def test_linked_by_parent_missing_parent(runner):
    (*_, result) = feed(runner, *SETUP, "SEARCH_LINKED_BY_PARENT 7 1 10")
    assert result.passed is False
    assert "Expected status 0, Got status -1" in result.info


def test_linked_by_parent_nonpositive_size_is_silent(runner):
    results = feed(runner, *SETUP, "SEARCH_LINKED_BY_PARENT 1 0")
    assert results[-1] is None


def test_operations_before_open_fail(runner):
    results = feed(runner, "STORE 1 1", "STORE 1 0", "CLOSE 1")
    assert [r.passed for r in results] == [True, False, True]


def test_delete_then_restore(runner):
    results = feed(runner, *SETUP, "NDX_DELETE 1 0", "NDX_DELETE 1 1", "STORE 1 0", "NDX_SEARCH 1 0")
    assert all(r.passed for r in results)


def test_data_survives_reopen(runner):
    results = feed(
        runner,
        "CREATE books authors 0",
        "OPEN books authors 0",
        "STORE 5 0",
        "CLOSE 0",
        "OPEN books authors 0",
        "NDX_SEARCH 5 0",
        "STORE 5 1",
    )
    assert all(r.passed for r in results)


def test_unknown_and_blank_lines(runner):
    assert runner.process_line("\n") is None
    result = runner.process_line("FROBNICATE 1\n")
    assert result.passed is None


def test_malformed_line_fails(runner):
    result = runner.process_line("STORE abc 0\n")
    assert result.passed is False
    assert result.info.startswith("malformed test case")


def test_run_output_format(runner):
    chunks = []
    results = runner.run(["\n", "CREATE books authors 0\n"], chunks.append)
    assert "".join(chunks) == "Test case:1\nTest case: CREATE books authors 0\nStatus: PASS - \n\n"
    assert results[0].passed is True


def test_main_runs_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    case_file = tmp_path / "cases.txt"
    case_file.write_text("\n".join(SETUP + ["NDX_SEARCH 2 0", "CLOSE 0"]) + "\n")
    assert tester.main([str(case_file)]) == 0
    out = capsys.readouterr().out
    assert out.count("Status: PASS - ") == 8
    assert "FAIL" not in out


def test_main_requires_one_argument(capsys):
    assert tester.main([]) == 1
    assert "Usage:" in capsys.readouterr().err