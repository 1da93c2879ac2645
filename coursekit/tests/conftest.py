"""
Pytest configuration and fixtures.
"""
import pytest
import tempfile
import shutil
from pathlib import Path
from types import SimpleNamespace

from coursekit.core.models import GLOSSARY_COMPONENT, TextFormat
from coursekit.storage import SQLiteRecordStore, SQLiteFileStorage, SQLiteCapabilityChecker
from coursekit.utils.config_manager import reset_config_manager


@pytest.fixture
def temp_dir():
    """Create temporary directory."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, tmp_path):
    """Setup test environment variables and a fresh config per test."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TESTING", "true")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.delenv("COURSEKIT_WWWROOT", raising=False)
    monkeypatch.delenv("COURSEKIT_EXPORT_DIR", raising=False)
    monkeypatch.delenv("COURSEKIT_DB_PATH", raising=False)
    reset_config_manager()
    yield
    reset_config_manager()


@pytest.fixture
def store(temp_dir):
    """Empty SQLite record store."""
    record_store = SQLiteRecordStore(temp_dir / "test.db")
    yield record_store
    record_store.close()


@pytest.fixture
def file_storage(store):
    return SQLiteFileStorage(store)


@pytest.fixture
def capabilities(store):
    return SQLiteCapabilityChecker(store)


@pytest.fixture
def glossary_site(store, file_storage):
    """
    A glossary with three entries.

    * "Cell" (HTML, trusted): one alias, category Basics, an attachment
      and an inline image
    * "Osmosis" (plain text): one alias row holding two terms, categories
      Basics and Processes
    * "Enzyme" (plain text): no alias, no category, definition starting
      with "="
    """
    author = store.insert_record('user', {'username': 'alice', 'firstname': 'Alice',
                                          'lastname': 'Author', 'email': 'alice@example.com'})
    reader = store.insert_record('user', {'username': 'bob', 'firstname': 'Bob',
                                          'lastname': 'Reader', 'email': 'bob@example.com'})

    glossary_id = store.insert_record('glossary', {'course': 2, 'name': 'Biology terms'})
    cm_id = store.insert_record('course_modules', {
        'course': 2, 'modulename': 'glossary', 'instance': glossary_id,
        'contextid': 50, 'name': 'Biology terms',
    })

    cell = store.insert_record('glossary_entries', {
        'glossaryid': glossary_id, 'userid': author, 'concept': 'Cell',
        'definition': '<p>Basic unit of life.</p><img src="@@PLUGINFILE@@/cell.png" />',
        'definitionformat': int(TextFormat.HTML), 'definitiontrust': 1,
        'timecreated': 1600000000, 'timemodified': 1600000100,
    })
    osmosis = store.insert_record('glossary_entries', {
        'glossaryid': glossary_id, 'userid': reader, 'concept': 'Osmosis',
        'definition': 'Movement of water\nacross a membrane',
        'definitionformat': int(TextFormat.PLAIN),
        'timecreated': 1600000200, 'timemodified': 1600000300,
    })
    enzyme = store.insert_record('glossary_entries', {
        'glossaryid': glossary_id, 'userid': author, 'concept': 'Enzyme',
        'definition': '=catalyst', 'definitionformat': int(TextFormat.PLAIN),
        'timecreated': 1600000400, 'timemodified': 1600000500,
    })

    store.insert_record('glossary_alias', {'entryid': cell, 'alias': 'Cellula'})
    store.insert_record('glossary_alias', {'entryid': osmosis, 'alias': 'Diffusion of water, Water transport'})

    basics = store.insert_record('glossary_categories', {'glossaryid': glossary_id, 'name': 'Basics'})
    processes = store.insert_record('glossary_categories', {'glossaryid': glossary_id, 'name': 'Processes'})
    store.insert_record('glossary_entries_categories', {'categoryid': basics, 'entryid': cell})
    store.insert_record('glossary_entries_categories', {'categoryid': basics, 'entryid': osmosis})
    store.insert_record('glossary_entries_categories', {'categoryid': processes, 'entryid': osmosis})

    attachment = file_storage.create_file({
        'contextid': 50, 'component': GLOSSARY_COMPONENT, 'filearea': 'attachment',
        'itemid': cell, 'filename': 'diagram.pdf', 'userid': author,
        'timecreated': 1600000000, 'timemodified': 1600000010,
    }, b"%PDF-1.4 diagram")
    inline = file_storage.create_file({
        'contextid': 50, 'component': GLOSSARY_COMPONENT, 'filearea': 'entry',
        'itemid': cell, 'filename': 'cell.png', 'userid': author,
        'timecreated': 1600000000, 'timemodified': 1600000020,
    }, b"\x89PNG fake image")

    return SimpleNamespace(
        author=author, reader=reader,
        glossary_id=glossary_id, cm_id=cm_id, contextid=50,
        cell=cell, osmosis=osmosis, enzyme=enzyme,
        attachment=attachment, inline=inline,
    )


LESSON_BACKUP = b"""<?xml version="1.0" encoding="UTF-8"?>
<activity id="11" moduleid="21" modulename="lesson" contextid="31">
  <lesson id="11">
    <course>5</course>
    <name>Cells 101</name>
    <practice>0</practice>
    <mediafile>intro.mp4</mediafile>
    <available>1000</available>
    <deadline>0</deadline>
    <timemodified>1600000000</timemodified>
    <pages>
      <page id="101">
        <prevpageid>0</prevpageid>
        <nextpageid>102</nextpageid>
        <qtype>20</qtype>
        <title>Welcome</title>
        <contents>&lt;p&gt;Hello&lt;/p&gt;</contents>
        <answers>
          <answer id="201">
            <jumpto>-1</jumpto>
            <answer_text>Next</answer_text>
            <response></response>
            <attempts>
              <attempt id="301">
                <userid>901</userid>
                <retry>0</retry>
                <correct>1</correct>
                <useranswer>Next</useranswer>
                <timeseen>1600000500</timeseen>
              </attempt>
            </attempts>
          </answer>
        </answers>
        <branches>
          <branch id="401">
            <userid>901</userid>
            <retry>0</retry>
            <flag>0</flag>
            <timeseen>1600000400</timeseen>
          </branch>
        </branches>
      </page>
      <page id="102">
        <prevpageid>101</prevpageid>
        <nextpageid>103</nextpageid>
        <qtype>3</qtype>
        <title>Question</title>
        <contents>What is a cell?</contents>
        <answers>
          <answer id="202">
            <answer_text>A unit of life</answer_text>
            <score>1</score>
            <attempts/>
          </answer>
          <answer id="203">
            <answer_text>A prison room</answer_text>
            <score>0</score>
            <attempts/>
          </answer>
        </answers>
        <branches/>
      </page>
      <page id="103">
        <prevpageid>102</prevpageid>
        <nextpageid>0</nextpageid>
        <qtype>21</qtype>
        <title>End</title>
        <contents>Bye</contents>
        <answers/>
        <branches/>
      </page>
    </pages>
    <grades>
      <grade id="501">
        <userid>901</userid>
        <grade>87.5</grade>
        <completed>1600000600</completed>
      </grade>
    </grades>
    <highscores>
      <highscore id="601">
        <gradeid>501</gradeid>
        <userid>901</userid>
        <nickname>ada</nickname>
      </highscore>
    </highscores>
    <timers>
      <timer id="701">
        <userid>901</userid>
        <starttime>1600000300</starttime>
        <lessontime>1600000700</lessontime>
      </timer>
    </timers>
  </lesson>
</activity>
"""


@pytest.fixture
def lesson_backup():
    """A lesson backup with three pages and one learner's user data."""
    return LESSON_BACKUP


@pytest.fixture
def lesson_target(store):
    """Target course module for a lesson restore, plus the learner's new user id."""
    learner = store.insert_record('user', {'username': 'learner', 'firstname': 'Lee', 'lastname': 'Learner'})
    cm_id = store.insert_record('course_modules', {
        'course': 8, 'modulename': 'lesson', 'instance': 0, 'contextid': 88,
    })
    return SimpleNamespace(course_id=8, cm_id=cm_id, contextid=88, learner=learner, users={901: learner})
