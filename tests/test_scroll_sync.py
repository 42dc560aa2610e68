import unittest

from rich.text import Text

from watchtower.modules.dashboard.viewport import LINES_PER_ITEM, Viewport, scroll_into_view


def _viewport(height: int, total_lines: int, offset: int = 0) -> Viewport:
    viewport = Viewport(width=80, height=height)
    viewport.set_content([Text(str(idx)) for idx in range(total_lines)])
    viewport.set_y_offset(offset)
    return viewport


class ScrollIntoViewTest(unittest.TestCase):
    def test_index_zero_always_returns_to_top(self):
        viewport = _viewport(height=10, total_lines=200, offset=57)
        scroll_into_view(viewport, header_line_count=12, selected_index=0)
        self.assertEqual(viewport.y_offset, 0)

    def test_selected_span_is_visible_for_every_index(self):
        header = 7
        items = 40
        for height in (3, 5, 10, 24):
            viewport = _viewport(height=height, total_lines=header + items * LINES_PER_ITEM)
            for index in list(range(items)) + list(reversed(range(items))):
                scroll_into_view(viewport, header, index)
                if index == 0:
                    self.assertEqual(viewport.y_offset, 0)
                    continue
                start = header + index * LINES_PER_ITEM
                end = start + LINES_PER_ITEM - 1
                self.assertGreaterEqual(start, viewport.y_offset, (height, index))
                self.assertLess(end, viewport.y_offset + viewport.height, (height, index))

    def test_fully_visible_item_does_not_move_window(self):
        viewport = _viewport(height=20, total_lines=100, offset=10)
        scroll_into_view(viewport, header_line_count=4, selected_index=3)
        self.assertEqual(viewport.y_offset, 10)

    def test_scrolls_down_to_place_item_at_bottom(self):
        viewport = _viewport(height=10, total_lines=100)
        scroll_into_view(viewport, header_line_count=4, selected_index=5)
        # item spans 19..21, so the window ends at 21
        self.assertEqual(viewport.y_offset, 12)

    def test_scrolls_up_to_place_item_at_top(self):
        viewport = _viewport(height=10, total_lines=100, offset=50)
        scroll_into_view(viewport, header_line_count=4, selected_index=2)
        self.assertEqual(viewport.y_offset, 10)


class ViewportTest(unittest.TestCase):
    def test_offsets_are_clamped(self):
        viewport = _viewport(height=10, total_lines=25)
        viewport.goto_bottom()
        self.assertEqual(viewport.y_offset, 15)
        viewport.line_down(5)
        self.assertEqual(viewport.y_offset, 15)
        viewport.half_view_up()
        self.assertEqual(viewport.y_offset, 10)
        viewport.line_up(50)
        self.assertEqual(viewport.y_offset, 0)
        self.assertEqual(len(viewport.visible_lines()), 10)

    def test_shrinking_content_pulls_offset_back(self):
        viewport = _viewport(height=10, total_lines=50, offset=40)
        viewport.set_content([Text("x")] * 12)
        self.assertEqual(viewport.y_offset, 2)


if __name__ == "__main__":
    unittest.main()
