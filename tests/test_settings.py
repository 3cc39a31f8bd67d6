"""应用设置与配置常量测试"""

from pathlib import Path

from myddl.core import config
from myddl.core.settings import (
    AppLanguage,
    AppSettings,
    CalendarFontSize,
    PresetColor,
    WeekStartDay,
    load_settings,
    save_settings,
)


class TestAppSettings:
    """AppSettings 读写测试"""

    def test_defaults(self):
        settings = AppSettings()
        assert settings.language == AppLanguage.CHINESE
        assert settings.week_start_day == WeekStartDay.MONDAY
        assert settings.calendar_font_size == CalendarFontSize.MEDIUM
        assert settings.workday_color == PresetColor.GRAY
        assert settings.restday_color == PresetColor.GREEN

    def test_missing_file(self, tmp_path: Path):
        assert load_settings(tmp_path / "none.json") == AppSettings()

    def test_save_and_load(self, tmp_path: Path):
        path = tmp_path / "conf" / "settings.json"
        settings = AppSettings(language=AppLanguage.ENGLISH, week_start_day=WeekStartDay.SUNDAY)
        assert save_settings(settings, path)
        assert load_settings(path) == settings

    def test_corrupt_file_falls_back(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text('{"language": "fr"}', encoding="utf-8")
        assert load_settings(path) == AppSettings()


class TestConfig:
    """环境变量映射测试"""

    def test_default_paths(self, monkeypatch):
        monkeypatch.delenv("MYDDL_DATA_DIR", raising=False)
        monkeypatch.delenv("MYDDL_DB_PATH", raising=False)
        monkeypatch.delenv("MYDDL_IMAGES_DIR", raising=False)
        monkeypatch.delenv("MYDDL_SETTINGS_PATH", raising=False)

        assert config.get_db_path() == str(Path("data") / "sqlite" / "myddl.sqlite")
        assert config.get_images_dir() == Path("data") / "images"
        assert config.get_settings_path() == Path("data") / "settings.json"

    def test_data_dir_override(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("MYDDL_DATA_DIR", str(tmp_path))
        monkeypatch.delenv("MYDDL_DB_PATH", raising=False)
        monkeypatch.delenv("MYDDL_IMAGES_DIR", raising=False)

        assert config.get_db_path() == str(tmp_path / "sqlite" / "myddl.sqlite")
        assert config.get_images_dir() == tmp_path / "images"

    def test_db_path_override(self, monkeypatch):
        monkeypatch.setenv("MYDDL_DB_PATH", "/tmp/other.sqlite")
        assert config.get_db_path() == "/tmp/other.sqlite"
