from __future__ import annotations

import unittest


class TestGlob(unittest.TestCase):
    def test_double_star_spans_directories(self) -> None:
        from publish_guard.glob import GlobMatcher

        m = GlobMatcher()
        self.assertTrue(m.matches("docs/a.md", "docs/**/*.md"))
        self.assertTrue(m.matches("docs/sub/c.md", "docs/**/*.md"))
        self.assertTrue(m.matches("docs/sub/deeper/x.txt", "docs/**"))
        self.assertFalse(m.matches("README.md", "docs/**"))

    def test_star_does_not_cross_directory(self) -> None:
        from publish_guard.glob import GlobMatcher

        m = GlobMatcher()
        self.assertTrue(m.matches("docs/a.md", "docs/*.md"))
        self.assertFalse(m.matches("docs/sub/c.md", "docs/*.md"))
        self.assertTrue(m.matches("docs/sub/c.md", "docs/*/c.md"))

    def test_match_base_applies_only_to_patterns_without_slash(self) -> None:
        from publish_guard.glob import GlobMatcher

        m = GlobMatcher()
        self.assertTrue(m.matches("source/foo.test.js", "*.test.js", match_base=True))
        self.assertFalse(m.matches("source/foo.test.js", "*.test.js"))
        self.assertTrue(m.matches("dir/sub/file.txt", "file.txt", match_base=True))
        self.assertFalse(m.matches("dir/sub/file.txt", "sub/file.txt", match_base=True))

    def test_negation_inverts_and_double_negation_cancels(self) -> None:
        from publish_guard.glob import GlobMatcher

        m = GlobMatcher()
        self.assertFalse(m.matches("a.js", "!a.js"))
        self.assertTrue(m.matches("b.js", "!a.js"))
        self.assertTrue(m.matches("a.js", "!!a.js"))

    def test_brace_groups_match_any_alternative(self) -> None:
        from publish_guard.glob import GlobMatcher

        outside = GlobMatcher().compile("!{index.js,lib/**}", match_base=True)
        self.assertFalse(outside("index.js"))
        self.assertFalse(outside("lib/util/x.js"))
        self.assertTrue(outside("test/x.js"))

    def test_wildcards_do_not_match_leading_dot(self) -> None:
        from publish_guard.glob import GlobMatcher

        m = GlobMatcher()
        self.assertFalse(m.matches(".eslintrc.js", "*.js", match_base=True))
        self.assertFalse(m.matches("lib/.hidden.js", "*.js", match_base=True))
        self.assertFalse(m.matches(".x", "?x"))
        self.assertFalse(m.matches(".x", "[.]x"))
        self.assertFalse(m.matches("lib/.cache/a.js", "lib/**/*.js"))
        self.assertFalse(m.matches("lib/.env", "lib/**"))
        self.assertTrue(m.matches("lib/a/b.js", "lib/**/*.js"))

    def test_pattern_with_leading_dot_matches_dot_files(self) -> None:
        from publish_guard.glob import GlobMatcher

        m = GlobMatcher()
        self.assertTrue(m.matches(".eslintrc.js", ".*.js"))
        self.assertTrue(m.matches("lib/.hidden.js", ".hidden.js", match_base=True))
        self.assertTrue(m.matches(".github/workflows/ci.yml", ".github/**"))

    def test_whitespace_is_trimmed_from_patterns_but_not_paths(self) -> None:
        from publish_guard.glob import GlobMatcher, normalize_repo_relative_path

        m = GlobMatcher()
        self.assertFalse(m.matches("a.js ", "a.js"))
        self.assertFalse(m.matches(" a.js", "a.js", match_base=True))
        self.assertTrue(m.matches("a.js", "  a.js "))
        self.assertEqual(normalize_repo_relative_path("lib/a.js "), "lib/a.js ")

    def test_expand_braces(self) -> None:
        from publish_guard.glob import expand_braces

        self.assertEqual(
            expand_braces("a/{b,c}/{d,e}.js"),
            ["a/b/d.js", "a/b/e.js", "a/c/d.js", "a/c/e.js"],
        )
        self.assertEqual(expand_braces("{a,{b,c}}.js"), ["a.js", "b.js", "c.js"])
        self.assertEqual(expand_braces("{a,a}"), ["a"])

    def test_expand_braces_keeps_literal_and_unbalanced_groups(self) -> None:
        from publish_guard.glob import expand_braces

        self.assertEqual(expand_braces("{a}.js"), ["{a}.js"])
        self.assertEqual(expand_braces("a{b,c"), ["a{b,c"])
        self.assertEqual(expand_braces("plain.js"), ["plain.js"])

    def test_normalize_repo_relative_path(self) -> None:
        from publish_guard.glob import normalize_repo_relative_path

        self.assertEqual(normalize_repo_relative_path("./docs//a.md"), "docs/a.md")
        self.assertEqual(normalize_repo_relative_path("/docs\\a.md"), "docs/a.md")
        self.assertEqual(normalize_repo_relative_path("   "), "")

    def test_normalize_repo_relative_path_rejects_dot_segments(self) -> None:
        from publish_guard.glob import GlobMatcher, normalize_repo_relative_path

        self.assertEqual(normalize_repo_relative_path("docs/../README.md"), "")
        self.assertFalse(GlobMatcher().matches("docs/../README.md", "docs/**"))


if __name__ == "__main__":
    raise SystemExit(unittest.main())
