"""Fixed demo dataset: two admins, four students, eight tasks and fourteen messages.

Every call produces the same ids, owners and contents. Only the timestamps
move, as offsets from ``now``.
"""

from datetime import datetime, timedelta, timezone

from taskboard.records import Dataset, MessageRecord, TaskRecord, UserRecord, format_timestamp

SAMPLE_PASSWORD = 'password123'

SAMPLE_USERS = [
    {'id': 'admin1', 'name': 'Admin User', 'email': 'admin@example.com', 'role': 'admin', 'student_id': ''},
    {'id': 'student1', 'name': 'John Smith', 'email': 'john@example.com', 'role': 'student', 'student_id': 'S12345'},
    {'id': 'student2', 'name': 'Emma Johnson', 'email': 'emma@example.com', 'role': 'student', 'student_id': 'S12346'},
    {'id': 'student3', 'name': 'Michael Brown', 'email': 'michael@example.com', 'role': 'student', 'student_id': 'S12347'},
    {'id': 'student4', 'name': 'Sophia Davis', 'email': 'sophia@example.com', 'role': 'student', 'student_id': 'S12348'},
    {'id': 'admin2', 'name': 'Sarah Wilson', 'email': 'sarah@example.com', 'role': 'admin', 'student_id': ''},
]

# (id, title, description, status, student index, admin index, age)
SAMPLE_TASKS = [
    (
        'task1',
        'Complete Project Proposal',
        'Write a detailed proposal for the final project including objectives, methodology, and expected outcomes.',
        'pending', 0, 0, timedelta(days=7),
    ),
    (
        'task2',
        'Submit Weekly Progress Report',
        'Document your progress for the week, including challenges faced and solutions implemented.',
        'completed', 1, 0, timedelta(days=14),
    ),
    (
        'task3',
        'Prepare Presentation Slides',
        'Create a presentation summarizing your research findings for the upcoming seminar.',
        'in-progress', 2, 1, timedelta(days=3),
    ),
    (
        'task4',
        'Review Literature',
        'Review and summarize at least 10 academic papers related to your research topic.',
        'pending', 0, 1, timedelta(days=10),
    ),
    (
        'task5',
        'Collect Survey Data',
        'Distribute the survey to at least 50 participants and compile the responses.',
        'in-progress', 1, 0, timedelta(days=5),
    ),
    (
        'task6',
        'Analyze Experimental Results',
        'Perform statistical analysis on the collected data and prepare visualizations.',
        'pending', 3, 1, timedelta(days=2),
    ),
    (
        'task7',
        'Submit Final Report',
        'Complete and submit the final report including all findings and conclusions.',
        'pending', 2, 0, timedelta(days=1),
    ),
    (
        'task8',
        'Prepare for Final Presentation',
        'Rehearse your presentation and prepare for potential questions from the panel.',
        'pending', 3, 0, timedelta(0),
    ),
]

# (id, sender, receiver, content, age); participants are ("admin" | "student", index)
SAMPLE_MESSAGES = [
    ('msg1', ('admin', 0), ('student', 0), 'How is your project proposal coming along?',
     timedelta(days=6)),
    ('msg2', ('student', 0), ('admin', 0), "I'm making good progress. Should have it ready by tomorrow.",
     timedelta(days=6, minutes=-30)),
    ('msg3', ('admin', 0), ('student', 0), 'Great! Let me know if you need any help.',
     timedelta(days=6, minutes=-45)),
    ('msg4', ('admin', 1), ('student', 1), 'Your weekly report is overdue. When can you submit it?',
     timedelta(days=3)),
    ('msg5', ('student', 1), ('admin', 1), "I apologize for the delay. I'll submit it by end of day.",
     timedelta(days=3, minutes=-20)),
    ('msg6', ('student', 2), ('admin', 0), 'Do you have any examples of previous presentations I could look at?',
     timedelta(days=2)),
    ('msg7', ('admin', 0), ('student', 2), "Yes, I'll email you some examples from last semester.",
     timedelta(days=2, minutes=-15)),
    ('msg8', ('student', 3), ('admin', 1), "I'm having trouble accessing the research database. Can you help?",
     timedelta(days=1)),
    ('msg9', ('admin', 1), ('student', 3), "I'll reset your access credentials and send them to you shortly.",
     timedelta(days=1, minutes=-10)),
    ('msg10', ('admin', 0), ('student', 0), "Don't forget about the deadline for the literature review next week.",
     timedelta(hours=12)),
    ('msg11', ('student', 0), ('admin', 0), "I've already started working on it. Thanks for the reminder!",
     timedelta(hours=11)),
    ('msg12', ('admin', 1), ('student', 2), 'How is the presentation preparation going?',
     timedelta(hours=5)),
    ('msg13', ('student', 2), ('admin', 1), "I've completed the first draft. Would you be able to review it?",
     timedelta(hours=4)),
    ('msg14', ('admin', 1), ('student', 2), "Sure, send it over and I'll take a look tomorrow morning.",
     timedelta(hours=3)),
]


def generate_sample_users() -> list[UserRecord]:
    return [UserRecord(password=SAMPLE_PASSWORD, **user) for user in SAMPLE_USERS]


def _split_roles(users: list[UserRecord]) -> dict[str, list[UserRecord]]:
    return {
        'admin': [user for user in users if user.role == 'admin'],
        'student': [user for user in users if user.role == 'student'],
    }


def generate_sample_tasks(users: list[UserRecord], now: datetime) -> list[TaskRecord]:
    by_role = _split_roles(users)
    if not by_role['admin'] or not by_role['student']:
        return []

    return [
        TaskRecord(
            id=task_id,
            title=title,
            description=description,
            status=status,
            assigned_to=by_role['student'][student_index].id,
            created_by=by_role['admin'][admin_index].id,
            created_at=format_timestamp(now - age),
        )
        for task_id, title, description, status, student_index, admin_index, age in SAMPLE_TASKS
    ]


def generate_sample_messages(users: list[UserRecord], now: datetime) -> list[MessageRecord]:
    by_role = _split_roles(users)
    if not by_role['admin'] or not by_role['student']:
        return []

    return [
        MessageRecord(
            id=message_id,
            sender_id=by_role[sender[0]][sender[1]].id,
            receiver_id=by_role[receiver[0]][receiver[1]].id,
            content=content,
            timestamp=format_timestamp(now - age),
        )
        for message_id, sender, receiver, content, age in SAMPLE_MESSAGES
    ]


def generate_sample_data(now: datetime | None = None) -> Dataset:
    now = now or datetime.now(timezone.utc)
    users = generate_sample_users()
    return Dataset(
        users=users,
        tasks=generate_sample_tasks(users, now),
        messages=generate_sample_messages(users, now),
    )
