# prepbolt/core/dummy_data.py
# Canned generation output served when USE_DUMMY_DATA is on

DUMMY_QUESTIONS = [
    {
        "question": "Which normal form removes partial dependencies on a composite key?",
        "options": ["1NF", "2NF", "3NF", "BCNF"],
        "correctAnswer": "2NF",
        "explanation": "2NF requires every non-key attribute to depend on the whole key."
    },
    {
        "question": "Which property of a transaction guarantees that committed changes survive a crash?",
        "options": ["Atomicity", "Consistency", "Isolation", "Durability"],
        "correctAnswer": "Durability",
        "explanation": "Durability keeps committed data through failures, usually via a write-ahead log."
    },
    {
        "question": "Which OOP principle hides internal state behind a public interface?",
        "options": ["Inheritance", "Encapsulation", "Polymorphism", "Abstraction"],
        "correctAnswer": "Encapsulation",
        "explanation": "Encapsulation bundles data with the methods that operate on it."
    },
    {
        "question": "Which scheduling algorithm can starve long processes?",
        "options": ["Round Robin", "FCFS", "Shortest Job First", "Multilevel Queue with aging"],
        "correctAnswer": "Shortest Job First",
        "explanation": "SJF keeps picking short jobs, so a long job may wait indefinitely."
    },
    {
        "question": "A train 120 m long passes a pole in 6 seconds. What is its speed in km/h?",
        "options": ["60", "72", "80", "90"],
        "correctAnswer": "72",
        "explanation": "120 / 6 = 20 m/s, and 20 * 18 / 5 = 72 km/h."
    },
    {
        "question": "Which SQL clause filters groups after aggregation?",
        "options": ["WHERE", "GROUP BY", "HAVING", "ORDER BY"],
        "correctAnswer": "HAVING",
        "explanation": "WHERE filters rows before grouping, HAVING filters the groups."
    },
    {
        "question": "Which component balances traffic across several application servers?",
        "options": ["CDN", "Load balancer", "Message queue", "Reverse index"],
        "correctAnswer": "Load balancer",
        "explanation": "A load balancer spreads incoming requests across a server pool."
    },
    {
        "question": "What is the time complexity of binary search on a sorted array?",
        "options": ["O(1)", "O(log n)", "O(n)", "O(n log n)"],
        "correctAnswer": "O(log n)",
        "explanation": "Each comparison halves the remaining search space."
    }
]

DUMMY_DAILY_TOPIC = {
    "title": "Indexes and Why Queries Get Faster",
    "content": """## What is an index?

An index is a separate structure, usually a B-tree, that keeps column values sorted
together with pointers to the rows that hold them.

## Why it helps

Without an index the database scans every row. With one it walks the tree in
*O(log n)* steps.

## Example

```sql
CREATE INDEX idx_users_email ON users(email);
SELECT * FROM users WHERE email = 'a@b.com';
```

Indexes speed up reads but slow down writes, since every insert must update them.""",
    "readTime": 3,
    "tags": ["dbms", "indexing"]
}

DUMMY_FLASHCARDS = [
    {"front": "What does ACID stand for?", "back": "Atomicity, Consistency, Isolation, Durability"},
    {"front": "Deadlock", "back": "Two or more processes each waiting for a resource held by another"},
    {"front": "Polymorphism", "back": "One interface, many implementations chosen at runtime or compile time"},
    {"front": "Primary key", "back": "A minimal set of columns that uniquely identifies a row"},
    {"front": "Thrashing", "back": "Excessive paging that leaves the CPU mostly idle"}
]
