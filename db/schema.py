# SQL schema for the Homeschool Coins database

SCHEMA_VERSION = 4

SCHEMA_SQL = """
-- Parents (main accounts)
CREATE TABLE IF NOT EXISTS parents (
    id TEXT PRIMARY KEY,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    name TEXT NOT NULL,
    family_code TEXT UNIQUE,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Children (linked to parents)
CREATE TABLE IF NOT EXISTS children (
    id TEXT PRIMARY KEY,
    parent_id TEXT NOT NULL REFERENCES parents (id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    birthdate TEXT,
    grade_level INTEGER CHECK (grade_level >= 1 AND grade_level <= 9),
    pin_hash TEXT,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Wallet: coins and streak
CREATE TABLE IF NOT EXISTS child_coins (
    child_id TEXT PRIMARY KEY REFERENCES children (id) ON DELETE CASCADE,
    balance INTEGER NOT NULL DEFAULT 0,
    total_earned INTEGER NOT NULL DEFAULT 0,
    current_streak INTEGER NOT NULL DEFAULT 0
);

-- Packages (reusable problem sets)
CREATE TABLE IF NOT EXISTS packages (
    id TEXT PRIMARY KEY,
    parent_id TEXT REFERENCES parents (id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    grade_level INTEGER NOT NULL CHECK (grade_level >= 1 AND grade_level <= 9),
    assignment_type TEXT NOT NULL DEFAULT 'math' CHECK (assignment_type IN ('math', 'reading', 'english')),
    problem_count INTEGER NOT NULL,
    difficulty_summary TEXT,
    description TEXT,
    is_global INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Package problems (immutable question definitions)
CREATE TABLE IF NOT EXISTS package_problems (
    id TEXT PRIMARY KEY,
    package_id TEXT NOT NULL REFERENCES packages (id) ON DELETE CASCADE,
    problem_number INTEGER NOT NULL,
    question_text TEXT NOT NULL,
    correct_answer TEXT NOT NULL,
    answer_type TEXT DEFAULT 'number' CHECK (answer_type IN ('number', 'text', 'multiple_choice')),
    options TEXT,
    explanation TEXT,
    hint TEXT,
    difficulty TEXT DEFAULT 'medium' CHECK (difficulty IN ('easy', 'medium', 'hard')),
    UNIQUE (package_id, problem_number)
);

-- Assignments
CREATE TABLE IF NOT EXISTS assignments (
    id TEXT PRIMARY KEY,
    parent_id TEXT NOT NULL REFERENCES parents (id) ON DELETE CASCADE,
    child_id TEXT NOT NULL REFERENCES children (id) ON DELETE CASCADE,
    assignment_type TEXT NOT NULL CHECK (assignment_type IN ('math', 'reading', 'english')),
    title TEXT NOT NULL,
    grade_level INTEGER,
    status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'in_progress', 'completed')),
    hints_allowed INTEGER NOT NULL DEFAULT 1,
    package_id TEXT REFERENCES packages (id),
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    completed_at TEXT
);

-- Legacy embedded math problems
CREATE TABLE IF NOT EXISTS math_problems (
    id TEXT PRIMARY KEY,
    assignment_id TEXT NOT NULL REFERENCES assignments (id) ON DELETE CASCADE,
    problem_number INTEGER NOT NULL,
    question_text TEXT NOT NULL,
    correct_answer TEXT NOT NULL,
    answer_type TEXT DEFAULT 'number' CHECK (answer_type IN ('number', 'text', 'multiple_choice')),
    options TEXT,
    explanation TEXT,
    hint TEXT,
    difficulty TEXT DEFAULT 'medium' CHECK (difficulty IN ('easy', 'medium', 'hard')),
    child_answer TEXT,
    is_correct INTEGER,
    answered_at TEXT,
    attempts_count INTEGER NOT NULL DEFAULT 0,
    hint_purchased INTEGER NOT NULL DEFAULT 0,
    UNIQUE (assignment_id, problem_number)
);

-- Legacy embedded reading questions (multiple choice only)
CREATE TABLE IF NOT EXISTS reading_questions (
    id TEXT PRIMARY KEY,
    assignment_id TEXT NOT NULL REFERENCES assignments (id) ON DELETE CASCADE,
    question_number INTEGER NOT NULL,
    question_text TEXT NOT NULL,
    correct_answer TEXT NOT NULL,
    options TEXT,
    difficulty TEXT DEFAULT 'medium' CHECK (difficulty IN ('easy', 'medium', 'hard')),
    child_answer TEXT,
    is_correct INTEGER,
    answered_at TEXT,
    UNIQUE (assignment_id, question_number)
);

-- Child answers for package-based assignments
CREATE TABLE IF NOT EXISTS assignment_answers (
    id TEXT PRIMARY KEY,
    assignment_id TEXT NOT NULL REFERENCES assignments (id) ON DELETE CASCADE,
    problem_id TEXT NOT NULL REFERENCES package_problems (id),
    child_answer TEXT,
    is_correct INTEGER,
    answered_at TEXT,
    attempts_count INTEGER NOT NULL DEFAULT 0,
    hint_purchased INTEGER NOT NULL DEFAULT 0,
    coins_spent_on_hint INTEGER NOT NULL DEFAULT 0,
    UNIQUE (assignment_id, problem_id)
);

-- Audit log of child activity
CREATE TABLE IF NOT EXISTS progress_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    child_id TEXT NOT NULL REFERENCES children (id) ON DELETE CASCADE,
    assignment_id TEXT NOT NULL REFERENCES assignments (id) ON DELETE CASCADE,
    action TEXT NOT NULL CHECK (action IN ('started', 'answered', 'completed', 'hint')),
    details TEXT,
    coins_earned INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Collectibles shop
CREATE TABLE IF NOT EXISTS collectibles (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    ascii_art TEXT NOT NULL,
    price INTEGER NOT NULL,
    rarity TEXT CHECK (rarity IN ('common', 'rare', 'epic', 'legendary'))
);

CREATE TABLE IF NOT EXISTS child_collectibles (
    child_id TEXT NOT NULL REFERENCES children (id) ON DELETE CASCADE,
    collectible_id TEXT NOT NULL REFERENCES collectibles (id),
    acquired_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (child_id, collectible_id)
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_children_parent ON children (parent_id);
CREATE INDEX IF NOT EXISTS idx_assignments_child ON assignments (child_id);
CREATE INDEX IF NOT EXISTS idx_assignments_status ON assignments (status);
CREATE INDEX IF NOT EXISTS idx_assignments_package ON assignments (package_id);
CREATE INDEX IF NOT EXISTS idx_math_problems_assignment ON math_problems (assignment_id);
CREATE INDEX IF NOT EXISTS idx_reading_questions_assignment ON reading_questions (assignment_id);
CREATE INDEX IF NOT EXISTS idx_packages_grade ON packages (grade_level);
CREATE INDEX IF NOT EXISTS idx_packages_parent ON packages (parent_id);
CREATE INDEX IF NOT EXISTS idx_package_problems_package ON package_problems (package_id);
CREATE INDEX IF NOT EXISTS idx_assignment_answers_assignment ON assignment_answers (assignment_id);
CREATE INDEX IF NOT EXISTS idx_assignment_answers_answered ON assignment_answers (answered_at);
CREATE INDEX IF NOT EXISTS idx_progress_logs_child ON progress_logs (child_id);
"""

# Starter collectibles for the coin shop
SEED_SQL = """
INSERT OR IGNORE INTO collectibles (id, name, ascii_art, price, rarity) VALUES
    ('pencilini', 'Pencilini Scribblero', ' /\\\\\n|  |\n|__|', 100, 'common'),
    ('meatballo', 'Meatballo Runnerino', ' .-.\n(o o)\n | |', 100, 'common'),
    ('bookwormio', 'Bookwormio Readarino', ' ___\n(o o)\n[BOOK]', 250, 'rare'),
    ('calculatoro', 'Calculatoro Mathmagico', '+---+\n|1+1|\n+---+', 250, 'rare'),
    ('brainiac', 'Brainiac Thinkertino', ' @@@\n@o o@\n \\_/', 500, 'epic'),
    ('cosmico', 'Cosmico Galaxerio', ' .*.\n*ooo*\n \\|/', 1000, 'legendary');
"""
