import textwrap

from archlens.schema.prisma import load_prisma_schema, parse_prisma

SCHEMA = textwrap.dedent("""
    datasource db {
      provider = "postgresql"
      url      = env("DATABASE_URL")
    }

    // Users of the shop
    model User {
      id        String   @id @default(cuid())
      email     String   @unique
      name      String?  // display name
      role      Role     @default(USER)
      posts     Post[]
      profile   Profile?
      tags      Tag[]
      updatedAt DateTime @updatedAt @map("updated_at")

      @@index([email])
    }

    model Post {
      id       Int    @id @default(autoincrement())
      title    String @default("Untitled // draft")
      author   User   @relation(fields: [authorId], references: [id])
      authorId String
    }

    model Profile {
      id     Int    @id
      user   User   @relation(fields: [userId], references: [id])
      userId String @unique
    }

    model Tag {
      id    Int    @id
      users User[]
    }

    enum Role {
      USER
      ADMIN // full access
      @@map("roles")
    }
""")


def entity(schema, name):
    return next(e for e in schema.entities if e.name == name)


def test_models_and_enums():
    schema = parse_prisma([("schema.prisma", SCHEMA)])
    assert schema.provider == "prisma"
    assert [e.name for e in schema.entities] == ["User", "Post", "Profile", "Tag"]
    assert [(e.name, e.values) for e in schema.enums] == [("Role", ("USER", "ADMIN"))]


def test_field_constraints():
    user = entity(parse_prisma([("schema.prisma", SCHEMA)]), "User")
    fields = {f.name: f for f in user.fields}

    assert fields["id"].constraints == ("primary key", "@default(cuid())")
    assert fields["email"].constraints == ("unique",)
    assert fields["name"].type == "String"
    assert fields["name"].constraints == ("optional",)
    assert fields["posts"].type == "Post"
    assert fields["posts"].constraints == ("array",)
    assert fields["updatedAt"].constraints == ("auto-updated", '@map("updated_at")')
    # Block attributes are not fields
    assert "@@index([email])" not in fields


def test_comment_markers_inside_strings_survive():
    post = entity(parse_prisma([("schema.prisma", SCHEMA)]), "Post")
    title = next(f for f in post.fields if f.name == "title")
    assert title.constraints == ('@default("Untitled // draft")',)


def test_relation_cardinality():
    schema = parse_prisma([("schema.prisma", SCHEMA)])
    user_relations = {r.field: (r.target, r.cardinality) for r in entity(schema, "User").relations}
    assert user_relations == {
        "posts": ("Post", "one-to-many"),
        "profile": ("Profile", "one-to-one"),
        "tags": ("Tag", "many-to-many"),
    }
    post_relations = [(r.field, r.target, r.cardinality) for r in entity(schema, "Post").relations]
    assert post_relations == [("author", "User", "one-to-one")]


def test_relations_resolve_across_files():
    schema = parse_prisma([
        ("a.prisma", "model Order {\n  id Int @id\n  items OrderItem[]\n}\n"),
        ("b.prisma", "model OrderItem {\n  id Int @id\n  order Order @relation(fields: [orderId], references: [id])\n  orderId Int\n}\n"),
    ])
    order = entity(schema, "Order")
    assert [(r.target, r.cardinality) for r in order.relations] == [("OrderItem", "one-to-many")]


def test_self_relation_is_one_to_many():
    schema = parse_prisma([("s.prisma", "model Category {\n  id Int @id\n  children Category[]\n  parent Category?\n}\n")])
    relations = {r.field: r.cardinality for r in entity(schema, "Category").relations}
    assert relations == {"children": "one-to-many", "parent": "one-to-one"}


def test_unclosed_block_is_skipped():
    schema = parse_prisma([("s.prisma", "model Broken {\n  id Int @id\n\nmodel Ok {\n  id Int @id\n}\n")])
    assert [e.name for e in schema.entities] == ["Ok"]


def test_duplicate_models_keep_first():
    schema = parse_prisma([
        ("a.prisma", "model User {\n  id Int @id\n}\n"),
        ("b.prisma", "model user {\n  id String @id\n  extra Int\n}\n"),
    ])
    assert len(schema.entities) == 1
    assert [f.name for f in schema.entities[0].fields] == ["id"]


def test_load_directory_of_schema_files(tmp_path):
    (tmp_path / "user.prisma").write_text("model User {\n  id Int @id\n}\n", encoding="utf-8")
    (tmp_path / "post.prisma").write_text("model Post {\n  id Int @id\n  author User\n}\n", encoding="utf-8")
    schema = load_prisma_schema(tmp_path)
    assert sorted(e.name for e in schema.entities) == ["Post", "User"]
    assert entity(schema, "Post").relations[0].target == "User"
