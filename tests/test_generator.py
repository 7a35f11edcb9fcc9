"""
tests/test_generator.py
Integration tests for brizzle.generator against a temporary project tree.

Tests cover:
- model: fresh schema, append, skip, force replace, dry-run
- actions: id type, ordering, MySQL insert path
- pages and API routes: paths and rendered content
- scaffold / resource / api composition and next steps
- destroy
- validation before any file I/O
"""

from __future__ import annotations

import pytest

from brizzle.config import GeneratorOptions
from brizzle.dialects import Dialect
from brizzle.errors import SchemaCorruptionError, ValidationError
from brizzle.generator import DestroyKind, Generator
from brizzle.schema import MergeAction

from conftest import output


# ===========================================================================
# Model
# ===========================================================================


def test_model_creates_schema(make_generator, project_dir, status):
    result = make_generator(Dialect.POSTGRESQL).model("post", ["title", "body:text"])

    schema = (project_dir / "db" / "schema.ts").read_text()
    assert result.merge.action == MergeAction.CREATED
    assert schema.startswith('import { pgTable, serial, text, timestamp } from "drizzle-orm/pg-core";')
    assert 'export const posts = pgTable("posts", {' in schema
    assert "create  db/schema.ts" in output(status)


def test_model_appends_to_existing_schema(make_generator, project_dir, status):
    generator = make_generator()
    generator.model("user", ["name"])
    generator.model("post", ["title", "authorId:references:user"])

    schema = (project_dir / "db" / "schema.ts").read_text()
    assert schema.count("import {") == 1
    assert 'sqliteTable("users"' in schema
    assert "authorId: integer(\"author_id\").notNull().references(() => users.id)" in schema
    assert "update  db/schema.ts" in output(status)


def test_existing_model_is_skipped(make_generator, project_dir, status):
    generator = make_generator()
    generator.model("post", ["title"])
    before = (project_dir / "db" / "schema.ts").read_text()

    result = generator.model("post", ["title", "body:text"])

    assert result.merge.action == MergeAction.SKIPPED
    assert result.skipped == [project_dir / "db" / "schema.ts"]
    assert (project_dir / "db" / "schema.ts").read_text() == before
    text = output(status)
    assert "skip  db/schema.ts" in text
    assert "Model Post already exists" in text


def test_force_replaces_model(make_generator, project_dir):
    make_generator().model("post", ["title"])
    make_generator(force=True).model("post", ["title", "body:text"])

    schema = (project_dir / "db" / "schema.ts").read_text()
    assert schema.count('sqliteTable("posts"') == 1
    assert 'body: text("body")' in schema


def test_model_dry_run_writes_nothing(make_generator, project_dir, status):
    make_generator(dry_run=True).model("post", ["title"])
    assert not (project_dir / "db" / "schema.ts").exists()
    assert "would create  db/schema.ts" in output(status)


def test_uuid_and_no_timestamps(make_generator, project_dir):
    make_generator(uuid=True, timestamps=False).model("token", ["value:uuid"])
    schema = (project_dir / "db" / "schema.ts").read_text()
    assert 'id: text("id").primaryKey().$defaultFn(() => crypto.randomUUID())' in schema
    assert "createdAt" not in schema


def test_corrupted_schema_is_reported_with_path(make_generator, project_dir):
    schema = project_dir / "db" / "schema.ts"
    schema.parent.mkdir()
    schema.write_text('import { sqliteTable } from "drizzle-orm/sqlite-core";\n\nexport const posts = sqliteTable("posts", {\n')

    with pytest.raises(SchemaCorruptionError, match="schema.ts"):
        make_generator(force=True).model("post", ["title"])
    assert schema.read_text().endswith("{\n")


# ===========================================================================
# Validation before I/O
# ===========================================================================


@pytest.mark.parametrize("name, fields", [
    ("schema", ["title"]),
    ("post", ["title", "price:money"]),
    ("post", ["status:enum"]),
    ("post", ["id:string", "title"]),
    ("post", ["createdAt:datetime"]),
    ("post", ["title", "updatedAt"]),
])
def test_invalid_input_touches_nothing(make_generator, project_dir, name, fields):
    with pytest.raises(ValidationError):
        make_generator().scaffold(name, fields)
    assert not (project_dir / "db").exists()
    assert not (project_dir / "app").exists()


def test_timestamp_field_names_allowed_without_timestamps(make_generator, project_dir):
    make_generator(timestamps=False).model("event", ["name", "createdAt:datetime"])
    schema = (project_dir / "db" / "schema.ts").read_text()
    assert schema.count("createdAt:") == 1
    assert "updatedAt" not in schema


# ===========================================================================
# Actions
# ===========================================================================


def test_actions_content(make_generator, project_dir):
    make_generator().scaffold("post", ["title"])
    actions = (project_dir / "app" / "posts" / "actions.ts").read_text()

    assert actions.startswith('"use server";\n')
    assert 'import { db } from "@/db";' in actions
    assert 'import { posts } from "@/db/schema";' in actions
    assert "export type Post = typeof posts.$inferSelect;" in actions
    assert "export type NewPost = typeof posts.$inferInsert;" in actions
    for fn in ("getPosts()", "getPost(id: number)", "createPost(", "updatePost(", "deletePost(id: number)"):
        assert f"export async function {fn}" in actions
    assert ".orderBy(desc(posts.createdAt))" in actions
    assert ".returning()" in actions
    assert '"id" | "createdAt" | "updatedAt"' in actions


def test_actions_follow_existing_table(make_generator, project_dir):
    make_generator(uuid=True, timestamps=False).model("token", ["value"])
    make_generator().actions("token")

    actions = (project_dir / "app" / "tokens" / "actions.ts").read_text()
    assert "getToken(id: string)" in actions
    assert ".orderBy(desc(tokens.id))" in actions
    assert ".set(data)" in actions


def test_mysql_actions_reselect_after_insert(make_generator, project_dir):
    make_generator(Dialect.MYSQL).resource("post", ["title"])
    actions = (project_dir / "app" / "posts" / "actions.ts").read_text()
    assert ".$returningId()" in actions
    assert ".returning()" not in actions


def test_actions_use_detected_alias(make_project, status, project_dir):
    project = make_project(alias="~", db_path="src/lib/db", app_path="src/app")
    Generator(project, GeneratorOptions(), status=status).resource("post", ["title"])

    actions = (project_dir / "src" / "app" / "posts" / "actions.ts").read_text()
    assert 'import { db } from "~/lib/db";' in actions
    assert (project_dir / "src" / "lib" / "db" / "schema.ts").exists()


# ===========================================================================
# Pages
# ===========================================================================


def test_scaffold_writes_all_pages(make_generator, project_dir, status):
    result = make_generator().scaffold("post", ["title", "body:text", "published:boolean"])

    base = project_dir / "app" / "posts"
    expected = [
        project_dir / "db" / "schema.ts",
        base / "actions.ts",
        base / "page.tsx",
        base / "new" / "page.tsx",
        base / "[id]" / "page.tsx",
        base / "[id]" / "edit" / "page.tsx",
    ]
    assert result.written == expected
    for path in expected:
        assert path.exists()

    text = output(status)
    assert "Scaffolding Post..." in text
    assert "Run 'npm run db:push' to update the database" in text
    assert "visit /posts" in text


def test_page_content(make_generator, project_dir):
    make_generator().scaffold("blogPost", ["title", "body?:text", "published:boolean", "status:enum:draft,live"])
    base = project_dir / "app" / "blog-posts"

    index = (base / "page.tsx").read_text()
    assert 'import { getBlogPosts, deleteBlogPost } from "./actions";' in index
    assert "export default async function BlogPostsPage()" in index
    assert '<Link href="/blog-posts/new">New Blog Post</Link>' in index
    assert "{blogPosts.map((blogPost) => (" in index
    assert 'blogPost.published ? "Yes" : "No"' in index

    new = (base / "new" / "page.tsx").read_text()
    assert "type NewBlogPost" in new
    assert 'title: formData.get("title") as string,' in new
    assert 'body: (formData.get("body") as string) || null,' in new
    assert 'published: formData.get("published") === "on",' in new
    assert '<textarea' in new
    assert '<option value="draft">draft</option>' in new
    assert 'redirect("/blog-posts");' in new

    show = (base / "[id]" / "page.tsx").read_text()
    assert "await getBlogPost(Number(id))" in show
    assert "notFound();" in show

    edit = (base / "[id]" / "edit" / "page.tsx").read_text()
    assert 'from "../../actions";' in edit
    assert "await updateBlogPost(Number(id), {" in edit
    assert "defaultChecked={ blogPost.published ?? false }" in edit


def test_pages_with_uuid_pass_string_id(make_generator, project_dir):
    make_generator(uuid=True).scaffold("post", ["title"])
    show = (project_dir / "app" / "posts" / "[id]" / "page.tsx").read_text()
    assert "await getPost(id)" in show


def test_scaffold_skips_existing_pages(make_generator, project_dir, status):
    make_generator().scaffold("post", ["title"])
    result = make_generator().scaffold("post", ["title"])
    assert len(result.skipped) == 6
    assert result.written == []


# ===========================================================================
# API routes
# ===========================================================================


def test_api_routes(make_generator, project_dir, status):
    make_generator().api("product", ["name", "price:float"])
    base = project_dir / "app" / "api" / "products"

    collection = (base / "route.ts").read_text()
    assert "export async function GET()" in collection
    assert "export async function POST(request: Request)" in collection
    assert 'console.error("POST /api/products failed:", error);' in collection

    member = (base / "[id]" / "route.ts").read_text()
    assert "const numericId = Number(id);" in member
    assert ".where(eq(products.id, numericId))" in member
    assert ".set({ ...body, updatedAt: new Date() })" in member
    for method in ("GET", "PATCH", "DELETE"):
        assert f"export async function {method}(request: Request, {{ params }}: Params)" in member

    assert "API available at /api/products" in output(status)


def test_api_routes_with_uuid(make_generator, project_dir):
    make_generator(uuid=True).api("product", ["name"])
    member = (project_dir / "app" / "api" / "products" / "[id]" / "route.ts").read_text()
    assert "numericId" not in member
    assert ".where(eq(products.id, id))" in member


def test_resource_has_no_pages(make_generator, project_dir, status):
    make_generator().resource("session", ["token:uuid"])
    assert (project_dir / "app" / "sessions" / "actions.ts").exists()
    assert not (project_dir / "app" / "sessions" / "page.tsx").exists()
    assert "Create pages in app/sessions/" in output(status)


# ===========================================================================
# Destroy
# ===========================================================================


def test_destroy_scaffold_keeps_schema(make_generator, project_dir, status):
    make_generator().scaffold("post", ["title"])
    assert make_generator().destroy(DestroyKind.SCAFFOLD, "post")

    assert not (project_dir / "app" / "posts").exists()
    assert (project_dir / "db" / "schema.ts").exists()
    assert "was not modified" in output(status)


def test_destroy_api_dry_run(make_generator, project_dir, status):
    make_generator().api("product", ["name"])
    assert make_generator(dry_run=True).destroy("api", "product")
    assert (project_dir / "app" / "api" / "products").exists()
    assert "would remove  app/api/products" in output(status)


def test_destroy_missing(make_generator, status):
    assert not make_generator().destroy("resource", "ghost")
    assert "not found" in output(status)


def test_destroy_unknown_kind(make_generator):
    with pytest.raises(ValidationError, match="Unknown type"):
        make_generator().destroy("model", "post")
