"""Cypher statements issued by turngraph.

Every value is passed as a parameter; nothing user-controlled is interpolated.
"""

FIND_SESSION = "MATCH (s:Session {id: $session_id}) RETURN s.id AS id LIMIT 1"

# MERGE is atomic under FalkorDB's serialized writes; the index keeps lookups cheap
ENSURE_SESSION_INDEX = "CREATE INDEX FOR (s:Session) ON (s.id)"

CREATE_SESSION = """
MERGE (s:Session {id: $session_id})
ON CREATE SET s.vt_start = $now, s.vt_end = $open_end,
              s.tt_start = $now, s.tt_end = $open_end,
              s.created_at = $now
RETURN s.tt_start AS tt_start
"""

LATEST_TURN = """
MATCH (t:Thought {session_id: $session_id})
RETURN t.id AS id, t.vt_start AS vt_start
ORDER BY t.vt_start DESC
LIMIT 1
"""

CREATE_FIRST_TURN = """
MATCH (s:Session {id: $session_id})
CREATE (t:Thought {id: $turn_id, session_id: $session_id, user_content: $user_content,
                   content: '', preview: '', vt_start: $vt_start, vt_end: $open_end,
                   tt_start: $now, tt_end: $open_end})
CREATE (s)-[:TRIGGERS {vt_start: $vt_start, tt_start: $now}]->(t)
RETURN t.id AS id
"""

CREATE_NEXT_TURN = """
MATCH (prev:Thought {id: $prev_turn_id})
CREATE (t:Thought {id: $turn_id, session_id: $session_id, user_content: $user_content,
                   content: '', preview: '', vt_start: $vt_start, vt_end: $open_end,
                   tt_start: $now, tt_end: $open_end})
CREATE (prev)-[:NEXT {vt_start: $vt_start, tt_start: $now}]->(t)
RETURN t.id AS id
"""

SET_USER_CONTENT = "MATCH (t:Thought {id: $turn_id}) SET t.user_content = $user_content"

UPDATE_PREVIEW = "MATCH (t:Thought {id: $turn_id}) SET t.preview = $preview"

CREATE_REASONING = """
MATCH (t:Thought {id: $turn_id})
CREATE (r:Reasoning {id: $reasoning_id, session_id: $session_id, turn_id: $turn_id,
                     content: $content, sequence_index: $sequence_index,
                     content_block_index: $content_block_index,
                     vt_start: $now, vt_end: $open_end, tt_start: $now, tt_end: $open_end})
CREATE (t)-[:YIELDS]->(r)
RETURN r.id AS id
"""

CREATE_TOOL_CALL = """
MATCH (t:Thought {id: $turn_id})
CREATE (tc:ToolCall {id: $tool_call_id, call_id: $call_id, session_id: $session_id,
                     turn_id: $turn_id, tool_name: $tool_name, tool_type: $tool_type,
                     arguments: $arguments, sequence_index: $sequence_index,
                     vt_start: $now, vt_end: $open_end, tt_start: $now, tt_end: $open_end})
CREATE (t)-[:YIELDS]->(tc)
RETURN tc.id AS id
"""

LINK_REASONING_TRIGGERS = """
MATCH (tc:ToolCall {id: $tool_call_id})
UNWIND $reasoning_ids AS reasoning_id
MATCH (r:Reasoning {id: reasoning_id})
CREATE (r)-[:TRIGGERS]->(tc)
RETURN count(r) AS linked
"""

RECORD_TOOL_FILE = """
MATCH (tc:ToolCall {id: $tool_call_id})
SET tc.file_path = $file_path, tc.file_action = $file_action
CREATE (f:FileTouch {id: $file_touch_id, session_id: $session_id, turn_id: $turn_id,
                     file_path: $file_path, action: $file_action,
                     sequence_index: $sequence_index, hunk: $hunk,
                     vt_start: $now, vt_end: $open_end, tt_start: $now, tt_end: $open_end})
CREATE (tc)-[:YIELDS]->(f)
RETURN f.id AS id
"""

RECORD_TURN_FILE = """
MATCH (t:Thought {id: $turn_id})
CREATE (f:FileTouch {id: $file_touch_id, session_id: $session_id, turn_id: $turn_id,
                     file_path: $file_path, action: $file_action,
                     sequence_index: $sequence_index, hunk: $hunk,
                     vt_start: $now, vt_end: $open_end, tt_start: $now, tt_end: $open_end})
CREATE (t)-[:YIELDS]->(f)
RETURN f.id AS id
"""

# Open Reasoning, ToolCall and FileTouch children close with the turn
FINALIZE_TURN = """
MATCH (t:Thought {id: $turn_id})
SET t.content = $content, t.preview = $preview,
    t.input_tokens = $input_tokens, t.output_tokens = $output_tokens,
    t.tool_calls_count = $tool_calls_count, t.files_touched = $files_touched,
    t.content_block_count = $content_block_index, t.tt_end = $now
WITH t
OPTIONAL MATCH (t)-[:YIELDS*1..2]->(c)
WHERE c.tt_end = $open_end
WITH t, collect(DISTINCT c) AS children
FOREACH (c IN children | SET c.tt_end = $now)
WITH t
UNWIND $tool_calls AS call
MATCH (tc:ToolCall {id: call.id})
SET tc.arguments = call.arguments
RETURN t.id AS id
"""

# NEXT*0..N bounds traversal on cyclic or pathological chains
LINEAR_TIMELINE = """
MATCH (s:Session {{id: $session_id}})-[:TRIGGERS]->(first:Thought)
MATCH (first)-[:NEXT*0..{max_hops}]->(t:Thought)
RETURN DISTINCT t
ORDER BY t.vt_start ASC
"""

FETCH_EXPIRED_PAGE = """
MATCH (n)
WHERE n.tt_end < $threshold
RETURN labels(n) AS labels, properties(n) AS props, id(n) AS node_id
ORDER BY id(n)
SKIP $skip
LIMIT $limit
"""

DELETE_EXPIRED_BATCH = """
MATCH (n)
WHERE n.tt_end < $threshold
WITH n LIMIT $batch_size
DETACH DELETE n
RETURN count(n) AS deleted_count
"""
