"""
jrt MCP Server パッケージ

JourneyGateway の操作を MCP ツールとして UI プロセスに公開する。

ツール:
  - jrt_record_journey: ブラウザを開いて記録し、生成したスクリプトを返す
  - jrt_run_journey: スクリプトを別プロセスで実行し、出力を返す
  - jrt_save_file: スクリプトをファイルに保存する
  - jrt_stop_recording: 記録中のセッションを停止する
"""
