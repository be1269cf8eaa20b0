"""File-based JSON storage standing in for the hosted table store.

Data layout:
  data/
    tables/
      characters.json      Character rows
      moods.json           Mood rows with threshold behaviors
      simulations.json     Simulation rows (keypoints, limits, setting ref)
      ai_settings.json     Provider API key + model rows
      global_prompts.json  Singleton prompt record (list of one row)
      chats.json           Chat rows (messages, status, analysis, path link)
      paths.json           Learning paths with ordered steps
      path_progress.json   Attempts per (path, simulation, user identifier)
      users.json           Accounts for the auth layer

Every table is a JSON list of row dicts with `id` and `created_at`. The
generic client in core.py (select/get/insert/update/delete/upsert) is the
only code that reads or writes the files; the entity modules validate rows
into the pydantic models of simroom.models.

Writes replace the whole file. There is no locking across processes: the
last writer wins.
"""

# Re-export all public symbols so `from simroom import storage` keeps working.

from .core import (  # noqa: F401
    data_dir,
    delete_row,
    get_row,
    init_storage,
    insert_row,
    read_table,
    select_rows,
    tables_dir,
    update_row,
    upsert_row,
    write_table,
)

from .characters import (  # noqa: F401
    create_character,
    create_mood,
    delete_character,
    delete_mood,
    find_mood,
    get_character,
    get_mood,
    list_characters,
    list_moods,
    update_character,
    update_mood,
)

from .simulations import (  # noqa: F401
    create_simulation,
    delete_simulation,
    get_simulation,
    list_simulations,
    simulations_using_setting,
    update_simulation,
)

from .settings import (  # noqa: F401
    DEFAULT_ANALYSIS_PROMPT,
    DEFAULT_CHARACTER_KEYPOINTS_EVALUATION_PROMPT,
    DEFAULT_GLOBAL_PROMPTS,
    DEFAULT_MOOD_EVALUATOR_PROMPT,
    DEFAULT_PLAYER_KEYPOINTS_EVALUATION_PROMPT,
    DEFAULT_SYSTEM_PROMPT,
    create_ai_setting,
    delete_ai_setting,
    get_ai_setting,
    get_global_prompts,
    list_ai_settings,
    reset_global_prompts,
    save_global_prompts,
    update_ai_setting,
)

from .chats import (  # noqa: F401
    create_chat,
    delete_chat,
    get_chat,
    list_chats,
    save_analysis,
    save_messages,
    set_status,
)

from .paths import (  # noqa: F401
    create_path,
    delete_path,
    get_path,
    get_progress,
    get_step_progress,
    list_paths,
    save_progress,
    update_path,
)

from .users import (  # noqa: F401
    create_user,
    find_user_by_email,
    get_user,
)
