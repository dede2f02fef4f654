import os
import subprocess
import sys
import time

import pymysql

# ======================
# Global Config
# ======================

MYSQL_IMAGE = "mysql:oraclelinux9"
MYSQL_ROOT_PASSWORD = os.getenv("MYSQL_PASSWORD", "1234")
MYSQL_HOST = os.getenv("MYSQL_HOST", "127.0.0.1")
MYSQL_PORT = int(os.getenv("MYSQL_PORT", "33061"))
MYSQL_DATABASE = os.getenv("MYSQL_DATABASE", "contoso")

CONTAINER_NAME = "mysql-contoso"
BASE_DATA_DIR = "./data"

# ======================
# Schema
# ======================

DDL = [
    """
    CREATE TABLE IF NOT EXISTS instructors (
        id INT AUTO_INCREMENT PRIMARY KEY,
        last_name VARCHAR(50) NOT NULL,
        first_mid_name VARCHAR(50) NOT NULL,
        hire_date DATE NOT NULL,
        row_version BINARY(8) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS departments (
        id INT AUTO_INCREMENT PRIMARY KEY,
        name VARCHAR(50) NOT NULL,
        budget DECIMAL(19, 4) NOT NULL,
        start_date DATE NOT NULL,
        instructor_id INT NULL,
        row_version BINARY(8) NOT NULL,
        FOREIGN KEY (instructor_id) REFERENCES instructors(id) ON DELETE SET NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS students (
        id INT AUTO_INCREMENT PRIMARY KEY,
        last_name VARCHAR(50) NOT NULL,
        first_mid_name VARCHAR(50) NOT NULL,
        enrollment_date DATE NOT NULL,
        row_version BINARY(8) NOT NULL
    )
    """,
]

SEED_INSTRUCTORS = [
    ("Abercrombie", "Kim", "1995-03-11"),
    ("Fakhouri", "Fadi", "2002-07-06"),
    ("Harui", "Roger", "1998-07-01"),
    ("Kapoor", "Candace", "2001-01-15"),
    ("Zheng", "Roger", "2004-02-12"),
]

SEED_DEPARTMENTS = [
    ("English", 350000, "2007-09-01", 1),
    ("Mathematics", 100000, "2007-09-01", 2),
    ("Engineering", 350000, "2007-09-01", 3),
    ("Economics", 100000, "2007-09-01", 4),
]

SEED_STUDENTS = [
    ("Alexander", "Carson", "2010-09-01"),
    ("Alonso", "Meredith", "2012-09-01"),
    ("Anand", "Arturo", "2013-09-01"),
    ("Barzdukas", "Gytis", "2012-09-01"),
    ("Li", "Yan", "2012-09-01"),
    ("Justice", "Peggy", "2011-09-01"),
    ("Norman", "Laura", "2013-09-01"),
    ("Olivetto", "Nino", "2005-09-01"),
]

# ======================
# Utils
# ======================

def run(cmd: list[str]):
    print(">>", " ".join(cmd))
    subprocess.run(cmd, check=True)


def remove_container_if_exists(name: str):
    subprocess.run(
        ["docker", "rm", "-f", name],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )


def connect(database=None, timeout=60):
    deadline = time.time() + timeout
    while True:
        try:
            return pymysql.connect(
                host=MYSQL_HOST,
                port=MYSQL_PORT,
                user="root",
                password=MYSQL_ROOT_PASSWORD,
                database=database,
                autocommit=True,
                cursorclass=pymysql.cursors.DictCursor,
            )
        except pymysql.err.OperationalError:
            if time.time() > deadline:
                raise
            time.sleep(1)

# ======================
# Main Logic
# ======================

def start_mysql():
    data_dir = os.path.join(BASE_DATA_DIR, CONTAINER_NAME)
    os.makedirs(data_dir, exist_ok=True)

    remove_container_if_exists(CONTAINER_NAME)

    run([
        "docker", "run", "-d",
        "--name", CONTAINER_NAME,
        "-e", f"MYSQL_ROOT_PASSWORD={MYSQL_ROOT_PASSWORD}",
        "-p", f"{MYSQL_PORT}:3306",
        "-v", f"{os.path.abspath(data_dir)}:/var/lib/mysql",
        MYSQL_IMAGE
    ])

    print(f"✅ {CONTAINER_NAME} started at {MYSQL_HOST}:{MYSQL_PORT}")


def create_schema():
    conn = connect()
    with conn.cursor() as cur:
        cur.execute(f"CREATE DATABASE IF NOT EXISTS {MYSQL_DATABASE}")
    conn.close()

    conn = connect(MYSQL_DATABASE)
    with conn.cursor() as cur:
        for stmt in DDL:
            cur.execute(stmt)
    conn.close()
    print(f"✅ schema ready in {MYSQL_DATABASE}")


def seed():
    conn = connect(MYSQL_DATABASE)
    with conn.cursor() as cur:
        cur.execute("SELECT COUNT(*) AS n FROM instructors")
        if cur.fetchone()["n"]:
            print("seed skipped: data already present")
            conn.close()
            return
        cur.executemany(
            "INSERT INTO instructors (last_name, first_mid_name, hire_date, row_version) "
            "VALUES (%s, %s, %s, RANDOM_BYTES(8))",
            SEED_INSTRUCTORS,
        )
        cur.executemany(
            "INSERT INTO departments (name, budget, start_date, instructor_id, row_version) "
            "VALUES (%s, %s, %s, %s, RANDOM_BYTES(8))",
            SEED_DEPARTMENTS,
        )
        cur.executemany(
            "INSERT INTO students (last_name, first_mid_name, enrollment_date, row_version) "
            "VALUES (%s, %s, %s, RANDOM_BYTES(8))",
            SEED_STUDENTS,
        )
    conn.close()
    print("✅ seed data inserted")


def main():
    mode = sys.argv[1] if len(sys.argv) > 1 else "up"

    if mode == "up":
        start_mysql()
        create_schema()
        seed()
    elif mode == "schema":
        create_schema()
    elif mode == "seed":
        create_schema()
        seed()
    else:
        print("Usage:")
        print("  python scripts/create_database.py up      # docker MySQL + schema + seed")
        print("  python scripts/create_database.py schema  # schema on an existing server")
        print("  python scripts/create_database.py seed    # schema + seed on an existing server")


if __name__ == "__main__":
    main()
