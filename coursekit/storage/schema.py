"""
Host schema subset used by the reference SQLite store.

Only the tables the glossary export and lesson restore touch are declared.
Timestamps are unix seconds stored as INTEGER.
"""

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS course (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        fullname TEXT NOT NULL DEFAULT '',
        shortname TEXT NOT NULL DEFAULT '',
        startdate INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS course_modules (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        course INTEGER NOT NULL DEFAULT 0,
        modulename TEXT NOT NULL,
        instance INTEGER NOT NULL DEFAULT 0,
        contextid INTEGER NOT NULL DEFAULT 0,
        name TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL DEFAULT '',
        firstname TEXT NOT NULL DEFAULT '',
        lastname TEXT NOT NULL DEFAULT '',
        email TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS capability_grants (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        userid INTEGER NOT NULL,
        contextid INTEGER NOT NULL,
        capability TEXT NOT NULL,
        UNIQUE(userid, contextid, capability)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS files (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        contextid INTEGER NOT NULL,
        component TEXT NOT NULL,
        filearea TEXT NOT NULL,
        itemid INTEGER NOT NULL DEFAULT 0,
        filepath TEXT NOT NULL DEFAULT '/',
        filename TEXT NOT NULL,
        mimetype TEXT NOT NULL DEFAULT 'application/octet-stream',
        filesize INTEGER NOT NULL DEFAULT 0,
        contenthash TEXT NOT NULL DEFAULT '',
        content BLOB,
        userid INTEGER NOT NULL DEFAULT 0,
        timecreated INTEGER NOT NULL DEFAULT 0,
        timemodified INTEGER NOT NULL DEFAULT 0,
        UNIQUE(contextid, component, filearea, itemid, filepath, filename)
    )
    """,
    # ---- glossary ----
    """
    CREATE TABLE IF NOT EXISTS glossary (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        course INTEGER NOT NULL DEFAULT 0,
        name TEXT NOT NULL DEFAULT '',
        intro TEXT NOT NULL DEFAULT '',
        mainglossary INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS glossary_entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        glossaryid INTEGER NOT NULL,
        userid INTEGER NOT NULL DEFAULT 0,
        concept TEXT NOT NULL,
        definition TEXT NOT NULL DEFAULT '',
        definitionformat INTEGER NOT NULL DEFAULT 0,
        definitiontrust INTEGER NOT NULL DEFAULT 0,
        sourceglossaryid INTEGER NOT NULL DEFAULT 0,
        approved INTEGER NOT NULL DEFAULT 1,
        timecreated INTEGER NOT NULL DEFAULT 0,
        timemodified INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS glossary_alias (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        entryid INTEGER NOT NULL,
        alias TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS glossary_categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        glossaryid INTEGER NOT NULL,
        name TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS glossary_entries_categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        categoryid INTEGER NOT NULL,
        entryid INTEGER NOT NULL
    )
    """,
    # ---- lesson ----
    """
    CREATE TABLE IF NOT EXISTS lesson (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        course INTEGER NOT NULL DEFAULT 0,
        name TEXT NOT NULL DEFAULT '',
        practice INTEGER NOT NULL DEFAULT 0,
        modattempts INTEGER NOT NULL DEFAULT 0,
        usepassword INTEGER NOT NULL DEFAULT 0,
        password TEXT NOT NULL DEFAULT '',
        dependency INTEGER NOT NULL DEFAULT 0,
        conditions TEXT NOT NULL DEFAULT '',
        grade INTEGER NOT NULL DEFAULT 0,
        custom INTEGER NOT NULL DEFAULT 0,
        ongoing INTEGER NOT NULL DEFAULT 0,
        usemaxgrade INTEGER NOT NULL DEFAULT 0,
        maxanswers INTEGER NOT NULL DEFAULT 4,
        maxattempts INTEGER NOT NULL DEFAULT 5,
        review INTEGER NOT NULL DEFAULT 0,
        nextpagedefault INTEGER NOT NULL DEFAULT 0,
        feedback INTEGER NOT NULL DEFAULT 1,
        minquestions INTEGER NOT NULL DEFAULT 0,
        maxpages INTEGER NOT NULL DEFAULT 0,
        timed INTEGER NOT NULL DEFAULT 0,
        maxtime INTEGER NOT NULL DEFAULT 0,
        retake INTEGER NOT NULL DEFAULT 1,
        activitylink INTEGER NOT NULL DEFAULT 0,
        mediafile TEXT NOT NULL DEFAULT '',
        mediaheight INTEGER NOT NULL DEFAULT 100,
        mediawidth INTEGER NOT NULL DEFAULT 650,
        mediaclose INTEGER NOT NULL DEFAULT 0,
        slideshow INTEGER NOT NULL DEFAULT 0,
        width INTEGER NOT NULL DEFAULT 640,
        height INTEGER NOT NULL DEFAULT 480,
        bgcolor TEXT NOT NULL DEFAULT '#FFFFFF',
        displayleft INTEGER NOT NULL DEFAULT 0,
        displayleftif INTEGER NOT NULL DEFAULT 0,
        progressbar INTEGER NOT NULL DEFAULT 0,
        showhighscores INTEGER NOT NULL DEFAULT 0,
        maxhighscores INTEGER NOT NULL DEFAULT 0,
        available INTEGER NOT NULL DEFAULT 0,
        deadline INTEGER NOT NULL DEFAULT 0,
        timemodified INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lesson_pages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lessonid INTEGER NOT NULL DEFAULT 0,
        prevpageid INTEGER NOT NULL DEFAULT 0,
        nextpageid INTEGER NOT NULL DEFAULT 0,
        qtype INTEGER NOT NULL DEFAULT 0,
        qoption INTEGER NOT NULL DEFAULT 0,
        layout INTEGER NOT NULL DEFAULT 1,
        display INTEGER NOT NULL DEFAULT 1,
        timecreated INTEGER NOT NULL DEFAULT 0,
        timemodified INTEGER NOT NULL DEFAULT 0,
        title TEXT NOT NULL DEFAULT '',
        contents TEXT NOT NULL DEFAULT '',
        contentsformat INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lesson_answers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lessonid INTEGER NOT NULL DEFAULT 0,
        pageid INTEGER NOT NULL DEFAULT 0,
        jumpto INTEGER NOT NULL DEFAULT 0,
        grade INTEGER NOT NULL DEFAULT 0,
        score INTEGER NOT NULL DEFAULT 0,
        flags INTEGER NOT NULL DEFAULT 0,
        timecreated INTEGER NOT NULL DEFAULT 0,
        timemodified INTEGER NOT NULL DEFAULT 0,
        answer TEXT,
        answerformat INTEGER NOT NULL DEFAULT 0,
        response TEXT,
        responseformat INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lesson_attempts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lessonid INTEGER NOT NULL DEFAULT 0,
        pageid INTEGER NOT NULL DEFAULT 0,
        userid INTEGER NOT NULL DEFAULT 0,
        answerid INTEGER NOT NULL DEFAULT 0,
        retry INTEGER NOT NULL DEFAULT 0,
        correct INTEGER NOT NULL DEFAULT 0,
        useranswer TEXT,
        timeseen INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lesson_grades (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lessonid INTEGER NOT NULL DEFAULT 0,
        userid INTEGER NOT NULL DEFAULT 0,
        grade REAL NOT NULL DEFAULT 0,
        late INTEGER NOT NULL DEFAULT 0,
        completed INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lesson_branch (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lessonid INTEGER NOT NULL DEFAULT 0,
        userid INTEGER NOT NULL DEFAULT 0,
        pageid INTEGER NOT NULL DEFAULT 0,
        retry INTEGER NOT NULL DEFAULT 0,
        flag INTEGER NOT NULL DEFAULT 0,
        timeseen INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lesson_high_scores (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lessonid INTEGER NOT NULL DEFAULT 0,
        userid INTEGER NOT NULL DEFAULT 0,
        gradeid INTEGER NOT NULL DEFAULT 0,
        nickname TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lesson_timer (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lessonid INTEGER NOT NULL DEFAULT 0,
        userid INTEGER NOT NULL DEFAULT 0,
        starttime INTEGER NOT NULL DEFAULT 0,
        lessontime INTEGER NOT NULL DEFAULT 0
    )
    """,
]

INDEX_STATEMENTS = [
    "CREATE INDEX IF NOT EXISTS idx_cm_module ON course_modules(modulename, instance)",
    "CREATE INDEX IF NOT EXISTS idx_files_area ON files(contextid, component, filearea, itemid)",
    "CREATE INDEX IF NOT EXISTS idx_entries_glossary ON glossary_entries(glossaryid)",
    "CREATE INDEX IF NOT EXISTS idx_alias_entry ON glossary_alias(entryid)",
    "CREATE INDEX IF NOT EXISTS idx_entrycat_entry ON glossary_entries_categories(entryid)",
    "CREATE INDEX IF NOT EXISTS idx_pages_lesson ON lesson_pages(lessonid)",
    "CREATE INDEX IF NOT EXISTS idx_answers_page ON lesson_answers(pageid)",
]
