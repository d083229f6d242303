"""
Extraction tests for the HQ and China catalog pages.

The pages are small hand-written copies of the live markup, served through
the static HTML driver (no browser).
"""

import json
import unittest

from dlimonitor.catalog import (
    china_course,
    china_price,
    extract_china,
    extract_hq,
    first_non_empty,
    hq_price,
)
from dlimonitor.driver import HtmlSession
from dlimonitor.model import Course


HQ_HTML = """
<div class="cmp-tabs">
  <ol role="tablist">
    <li class="cmp-tabs__tab" id="tabs-1-item-1">Generative AI/LLM</li>
    <li class="cmp-tabs__tab" id="tabs-1-item-2">Deep Learning</li>
    <li class="cmp-tabs__tab" id="tabs-1-item-3">Infrastructure</li>
    <li class="cmp-tabs__tab" id="tabs-1-item-4">Data Science</li>
  </ol>

  <div class="cmp-tabs__tabpanel" aria-labelledby="tabs-1-item-1">
    <a class="dli--card" href="https://learn.example.com/featured">
      <h3 class="dli--title">Featured Course</h3>
    </a>
    <div class="dli--container">
      <a class="dli--card" href="https://learn.example.com/rag">
        <h3 class="dli--title"> Building RAG Agents with LLMs </h3>
        <ul class="dli--description"><li>8 hours</li><li> $90 </li></ul>
      </a>
      <a class="dli--card" href="https://learn.example.com/llm-intro">
        <h3 class="dli--title">Introduction to LLMs</h3>
        <ul class="dli--description"><li>2 hours</li><li>Free</li></ul>
      </a>
      <a class="dli--card" href="https://learn.example.com/untitled">
        <h3 class="dli--title">   </h3>
        <ul class="dli--description"><li>$30</li></ul>
      </a>
      <a class="dli--card" href="https://learn.example.com/prompting">
        <h3 class="dli--title">Prompt Engineering</h3>
        <ul class="dli--description"><li>Self-paced</li><li>English</li></ul>
      </a>
    </div>
  </div>

  <div class="cmp-tabs__tabpanel" aria-labelledby="tabs-1-item-2">
    <a class="dli--card" href="https://learn.example.com/dl">
      <h3 class="dli--title">Fundamentals of Deep Learning</h3>
      <ul class="dli--description"><li>Free</li></ul>
    </a>
  </div>

  <div class="cmp-tabs__tabpanel" aria-labelledby="tabs-1-item-3">
    <div class="dli--container">
      <a class="dli--card" href="https://learn.example.com/infra">
        <h3 class="dli--title">Data Center Networking</h3>
      </a>
    </div>
  </div>

  <div class="cmp-tabs__tabpanel" aria-labelledby="tabs-1-item-4">
    <div class="dli--container"></div>
  </div>

  <div class="cmp-tabs__tabpanel">
    <a class="dli--card" href="https://learn.example.com/orphan">
      <h3 class="dli--title">Orphan Panel Course</h3>
    </a>
  </div>
</div>
"""


CHINA_HTML = """
<ul class="tabs">
  <li data-tab="tab-genai">生成式 AI/大语言模型</li>
  <li data-tab="tab-infra">基础架构</li>
  <li data-tab="tab-dl">深度学习</li>
  <li data-tab="tab-missing">加速计算</li>
  <li data-tab="">图形与仿真</li>
</ul>

<div id="tab-genai">
  <div class="card2p">
    <div class="card">
      <div class="column-1"><div class="textcomponentenhanced"><h4>构建 RAG 智能体</h4></div></div>
      <div class="time-price"><p>8 小时 | 90 美元</p></div>
      <div class="button"><a href="https://cn.example.com/rag">了解更多</a></div>
    </div>
    <div class="card">
      <h4>大语言模型入门</h4>
      <div class="description"><p>2 小时 | 限时免费</p></div>
      <a href="https://cn.example.com/llm">了解更多</a>
    </div>
    <div class="card">
      <h4>Prompt Basics</h4>
      <div class="description"><p>Price: $30 USD</p></div>
      <a href="https://cn.example.com/prompt">Learn more</a>
    </div>
    <div class="card">
      <h4> </h4>
      <a href="https://cn.example.com/untitled">了解更多</a>
    </div>
  </div>
</div>

<div id="tab-infra">
  <div class="card"><h4>数据中心网络</h4><a href="https://cn.example.com/infra">了解更多</a></div>
</div>

<div id="tab-dl">
  <div class="card">
    <h4>深度学习基础</h4>
    <div class="time-price"><p>自学 | 免费</p></div>
    <a href="https://cn.example.com/dl">了解更多</a>
  </div>
  <div class="card">
    <h4>没有价格的课程</h4>
  </div>
</div>
"""


class TestHQExtraction(unittest.TestCase):
    def setUp(self) -> None:
        self.result = extract_hq(HtmlSession(HQ_HTML))

    def test_sections_and_totals(self) -> None:
        self.assertEqual([s.title for s in self.result.sections], ["Generative AI/LLM", "Deep Learning"])
        self.assertEqual([s.count for s in self.result.sections], [3, 1])
        self.assertEqual(self.result.total, 4)

    def test_container_cards_win_over_featured_list(self) -> None:
        genai = self.result.sections[0]
        self.assertEqual(
            list(genai.courses),
            [
                Course("Building RAG Agents with LLMs", "https://learn.example.com/rag", "$90"),
                Course("Introduction to LLMs", "https://learn.example.com/llm-intro", "Free"),
                Course("Prompt Engineering", "https://learn.example.com/prompting", "Free"),
            ],
        )

    def test_only_first_container_is_read(self) -> None:
        html = """
        <li class="cmp-tabs__tab" id="t1">Deep Learning</li>
        <div class="cmp-tabs__tabpanel" aria-labelledby="t1">
          <div class="dli--container">
            <a class="dli--card" href="http://a"><h3 class="dli--title">A</h3></a>
          </div>
          <div class="dli--container">
            <a class="dli--card" href="http://a"><h3 class="dli--title">A</h3></a>
          </div>
        </div>
        """
        result = extract_hq(HtmlSession(html))
        self.assertEqual(result.total, 1)
        self.assertEqual([c.url for c in result.courses()], ["http://a"])

    def test_panel_without_container_falls_back_to_panel_cards(self) -> None:
        dl = self.result.sections[1]
        self.assertEqual([c.url for c in dl.courses], ["https://learn.example.com/dl"])

    def test_excluded_unknown_and_empty_panels_are_dropped(self) -> None:
        titles = [s.title for s in self.result.sections]
        self.assertNotIn("Infrastructure", titles)
        self.assertNotIn("Data Science", titles)
        self.assertNotIn("Unknown", titles)

    def test_empty_titles_are_discarded(self) -> None:
        urls = [c.url for c in self.result.courses()]
        self.assertNotIn("https://learn.example.com/untitled", urls)
        self.assertTrue(all(c.title for c in self.result.courses()))

    def test_extraction_is_idempotent(self) -> None:
        session = HtmlSession(HQ_HTML)
        first = extract_hq(session)
        second = extract_hq(session)
        self.assertEqual(first, second)
        self.assertEqual(json.dumps(first.to_dict()), json.dumps(second.to_dict()))

    def test_hq_price_rules(self) -> None:
        self.assertEqual(hq_price(" $90 "), "$90")
        self.assertEqual(hq_price("Free"), "Free")
        self.assertEqual(hq_price("Free for members"), "Free for members")
        self.assertEqual(hq_price("8 hours"), "Free")
        self.assertEqual(hq_price(None), "Free")


class TestChinaExtraction(unittest.TestCase):
    def setUp(self) -> None:
        self.result = extract_china(HtmlSession(CHINA_HTML))

    def test_sections(self) -> None:
        self.assertEqual([s.title for s in self.result.sections], ["生成式 AI/大语言模型", "深度学习"])
        self.assertEqual(self.result.total, 5)

    def test_courses_and_prices(self) -> None:
        genai = self.result.sections[0]
        self.assertEqual(
            list(genai.courses),
            [
                Course("构建 RAG 智能体", "https://cn.example.com/rag", "90 美元"),
                Course("大语言模型入门", "https://cn.example.com/llm", "限时免费"),
                Course("Prompt Basics", "https://cn.example.com/prompt", "$30"),
            ],
        )

        dl = self.result.sections[1]
        self.assertEqual(dl.courses[0].price, "免费")
        # no link and no price text: empty URL, default price
        self.assertEqual(dl.courses[1], Course("没有价格的课程", "", "Free"))

    def test_infrastructure_tab_is_excluded(self) -> None:
        urls = [c.url for c in self.result.courses()]
        self.assertNotIn("https://cn.example.com/infra", urls)
        self.assertNotIn("基础架构", [s.title for s in self.result.sections])

    def test_extraction_is_idempotent(self) -> None:
        session = HtmlSession(CHINA_HTML)
        self.assertEqual(extract_china(session), extract_china(session))

    def test_china_price_patterns(self) -> None:
        self.assertEqual(china_price("8 小时 | 90 美元"), "90 美元")
        self.assertEqual(china_price("90美元"), "90美元")
        self.assertEqual(china_price("免费"), "免费")
        self.assertEqual(china_price("限时免费"), "限时免费")
        self.assertEqual(china_price("Free"), "Free")
        self.assertEqual(china_price("Only $45 today"), "$45")
        self.assertEqual(china_price("自学课程"), "Free")
        self.assertEqual(china_price(""), "Free")
        self.assertEqual(china_price(None), "Free")

    def test_broad_price_source(self) -> None:
        html = """
        <div class="card">
          <h4>Broad</h4>
          <div class="time-price"><span>Price</span><span>$45</span></div>
          <a href="https://cn.example.com/broad">x</a>
        </div>
        """
        card = HtmlSession(html).find(".card")
        assert card is not None
        # narrow source only reads <p> inside the price block
        self.assertEqual(china_course(card).price, "Free")
        self.assertEqual(china_course(card, broad=True).price, "$45")


class TestFallbackChain(unittest.TestCase):
    def test_first_non_empty_tier_wins(self) -> None:
        calls = []

        def tier(name, courses):
            def run():
                calls.append(name)
                return courses

            return run

        a = Course("A", "http://a")
        result = first_non_empty([tier("container", []), tier("panel", [a]), tier("never", [a, a])])
        self.assertEqual(result, [a])
        self.assertEqual(calls, ["container", "panel"])

    def test_all_tiers_empty(self) -> None:
        self.assertEqual(first_non_empty([lambda: [], lambda: []]), [])


if __name__ == "__main__":
    unittest.main()
